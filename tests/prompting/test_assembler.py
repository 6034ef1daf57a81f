"""Tests for context assembly under character budgets."""

from __future__ import annotations

from repobrief.models import CandidateFile, ContextBudget
from repobrief.prompting.assembler import (
    DEFAULT_PRIORITY,
    ContextAssembler,
    build_file_listing,
    file_priority,
)


def test_file_priority_orders_common_files() -> None:
    assert file_priority("package.json") == 100
    assert file_priority("README.md") == 90
    assert file_priority("tsconfig.json") == 85
    assert file_priority("config/settings.py") == 70
    assert file_priority("main.py") == 65
    assert file_priority("src/widgets/core.py") == 50
    assert file_priority("docs/guide.txt") == 45
    assert file_priority("tests/test_core.py") == 30
    assert file_priority("tools/helper.py") == DEFAULT_PRIORITY


def test_assemble_orders_by_priority_and_formats_sections() -> None:
    files = [
        CandidateFile(path="src/core.py", content="x = 1"),
        CandidateFile(path="README.md", content="# Widgets"),
    ]

    context = ContextAssembler().assemble(files)

    assert context.included_paths == ["README.md", "src/core.py"]
    assert context.text.startswith("FILE: README.md\n" + "=" * 50 + "\n# Widgets")
    assert "FILE: src/core.py" in context.text


def test_per_file_budget_truncates_with_marker() -> None:
    budget = ContextBudget(max_chars_per_file=40, max_total_chars=10_000)
    files = [CandidateFile(path="big.py", content="y" * 500)]

    context = ContextAssembler(budget).assemble(files)

    body = context.text.split("=" * 50 + "\n", 1)[1]
    assert len(body) == 40
    assert body.endswith("... (truncated)")


def test_total_budget_is_never_exceeded_and_stops_adding_files() -> None:
    budget = ContextBudget(max_chars_per_file=300, max_total_chars=500)
    files = [CandidateFile(path=f"mod{index}.py", content="z" * 400) for index in range(5)]

    context = ContextAssembler(budget).assemble(files)

    assert len(context.text) <= 500
    assert 1 <= len(context.included_paths) < 5


def test_assembly_is_deterministic() -> None:
    files = [
        CandidateFile(path="b.py", content="b"),
        CandidateFile(path="a.py", content="a"),
        CandidateFile(path="setup.py", content="setup()"),
    ]
    assembler = ContextAssembler()

    first = assembler.assemble(files, all_paths=["a.py", "b.py", "setup.py"])
    second = assembler.assemble(files, all_paths=["a.py", "b.py", "setup.py"])

    assert first == second
    assert first.included_paths == ["setup.py", "b.py", "a.py"]


def test_empty_selection_yields_empty_context() -> None:
    context = ContextAssembler().assemble([], all_paths=[])

    assert context.text == ""
    assert context.included_paths == []


def test_file_listing_groups_by_directory() -> None:
    listing = build_file_listing(["README.md", "src/a.py", "src/b.py", "docs/x.md"])

    assert listing.startswith("## Complete File List\n")
    assert "- README.md" in listing
    assert "### src/\n- src/a.py\n- src/b.py" in listing
    assert listing.index("- README.md") < listing.index("### docs/") < listing.index("### src/")
