"""Tests for repobrief.sources.exclusions."""

from __future__ import annotations

from repobrief.sources.exclusions import DEFAULT_POLICY, ExclusionPolicy


def test_excludes_vendor_and_build_directories() -> None:
    assert DEFAULT_POLICY.is_excluded("node_modules/react/index.js")
    assert DEFAULT_POLICY.is_excluded("packages/web/node_modules/x/index.js")
    assert DEFAULT_POLICY.is_excluded(".git/HEAD")
    assert DEFAULT_POLICY.is_excluded("dist/bundle.js")
    assert DEFAULT_POLICY.is_excluded("__pycache__/mod.cpython-311.pyc")


def test_excludes_by_extension() -> None:
    assert DEFAULT_POLICY.is_excluded("assets/logo.png")
    assert DEFAULT_POLICY.is_excluded("docs/manual.pdf")
    assert DEFAULT_POLICY.is_excluded("release/app.tar.gz")


def test_keeps_source_and_manifests() -> None:
    assert not DEFAULT_POLICY.is_excluded("src/main.py")
    assert not DEFAULT_POLICY.is_excluded("README.md")
    assert not DEFAULT_POLICY.is_excluded("package.json")
    assert not DEFAULT_POLICY.is_excluded("requirements.txt")


def test_directory_names_match_whole_segments_only() -> None:
    assert not DEFAULT_POLICY.is_excluded("src/builder.py")
    assert not DEFAULT_POLICY.is_excluded("distribution/notes.txt")


def test_matching_is_case_sensitive() -> None:
    assert DEFAULT_POLICY.is_excluded("logo.png")
    assert not DEFAULT_POLICY.is_excluded("logo.PNG")


def test_extend_adds_names_and_normalises_extensions() -> None:
    policy = ExclusionPolicy().extend(names=["sandbox/"], extensions=["csv", "*.parquet"])

    assert policy.is_excluded("sandbox/try.py")
    assert policy.is_excluded("data/table.csv")
    assert policy.is_excluded("data/table.parquet")
    assert not DEFAULT_POLICY.is_excluded("sandbox/try.py")


def test_filter_preserves_order() -> None:
    paths = ["b.py", "node_modules/a.js", "a.py", "img.jpg"]

    assert DEFAULT_POLICY.filter(paths) == ["b.py", "a.py"]
