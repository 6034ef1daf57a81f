"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from repobrief.cli import _build_parser, main
from repobrief.errors import SourceUnavailable
from repobrief.jobs.controller import JobController
from repobrief.retry import RetryPolicy


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "run", "https://github.com/octo/widgets"])
    assert args.verbose is True
    assert args.command == "run"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["run", "https://github.com/octo/widgets", "--verbose"])
    assert args.verbose is True
    assert args.repo_url == "https://github.com/octo/widgets"


def test_cli_serve_defaults() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve", "--port", "9000"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 9000
    assert args.config is None


def test_cli_run_prints_summary(
    monkeypatch, capsys, tmp_path: Path, hosting, generator, make_pipeline
) -> None:
    controller = JobController(
        make_pipeline(hosting, generator), retry_policy=RetryPolicy(backoff=0)
    )
    monkeypatch.setattr("repobrief.cli.build_controller", lambda config: controller)

    main(["run", "https://github.com/octo/widgets", "--config", str(tmp_path)])

    assert generator.reply in capsys.readouterr().out


def test_cli_run_exits_nonzero_on_failure(
    monkeypatch, capsys, tmp_path: Path, hosting_factory, generator, make_pipeline
) -> None:
    client = hosting_factory({}, listing_error=SourceUnavailable("Repository not found: octo/widgets"))
    controller = JobController(make_pipeline(client, generator), retry_policy=RetryPolicy(backoff=0))
    monkeypatch.setattr("repobrief.cli.build_controller", lambda config: controller)

    with pytest.raises(SystemExit) as excinfo:
        main(["run", "https://github.com/octo/widgets", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "Repository not found" in capsys.readouterr().err


def test_cli_run_rejects_invalid_reference(monkeypatch, tmp_path: Path, hosting, generator, make_pipeline) -> None:
    controller = JobController(make_pipeline(hosting, generator))
    monkeypatch.setattr("repobrief.cli.build_controller", lambda config: controller)

    with pytest.raises(SystemExit) as excinfo:
        main(["run", "not a url", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
