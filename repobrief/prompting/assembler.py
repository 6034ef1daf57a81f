"""Packs selected files into a character-budgeted context for generation."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from ..models import AssembledContext, CandidateFile, ContextBudget

TRUNCATION_MARKER = "\n... (truncated)"
HEADER_RULE = "=" * 50

_MANIFEST_FILES = {
    "package.json",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "requirements.txt",
    "cargo.toml",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
    "gemfile",
    "composer.json",
}
_LINT_FILES = {"tsconfig.json", "jsconfig.json", "mypy.ini", "ruff.toml", ".flake8", ".pylintrc"}
_ENTRY_PREFIXES = ("index.", "main.", "app.", "cli.", "server.")
_SOURCE_DIRS = {"src", "lib", "pkg", "app"}
_TEST_DIRS = {"test", "tests", "__tests__", "spec", "specs"}


def _name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _dirs(path: str) -> List[str]:
    return path.split("/")[:-1]


def _is_test(path: str) -> bool:
    name = _name(path)
    if any(part in _TEST_DIRS for part in _dirs(path)):
        return True
    return (
        name.startswith("test_")
        or ".test." in name
        or ".spec." in name
        or name.endswith("_test.py")
        or name.endswith("_test.go")
    )


# First matching rule wins; paths are lowercased before matching.
_PRIORITY_RULES: Tuple[Tuple[Callable[[str], bool], int], ...] = (
    (lambda path: _name(path) in _MANIFEST_FILES, 100),
    (lambda path: _name(path) in {"readme", "readme.md", "readme.rst", "readme.txt"}, 90),
    (lambda path: _name(path) in _LINT_FILES or _name(path).startswith(".eslintrc"), 85),
    (_is_test, 30),
    (lambda path: "config" in _name(path) or "config" in _dirs(path), 70),
    (lambda path: _name(path).startswith(_ENTRY_PREFIXES) or _name(path) == "__main__.py", 65),
    (lambda path: any(part in _SOURCE_DIRS for part in _dirs(path)), 50),
    (lambda path: path.endswith((".md", ".rst")) or "docs" in _dirs(path), 45),
)
DEFAULT_PRIORITY = 40


def file_priority(path: str) -> int:
    """Static importance of a path for summarisation (higher first)."""
    lowered = path.lower().replace("\\", "/").strip("/")
    for predicate, score in _PRIORITY_RULES:
        if predicate(lowered):
            return score
    return DEFAULT_PRIORITY


class ContextAssembler:
    """Orders files by priority and appends them until the budget is spent."""

    def __init__(self, budget: ContextBudget | None = None) -> None:
        self.budget = budget or ContextBudget()

    def assemble(
        self,
        files: Sequence[CandidateFile],
        *,
        all_paths: Iterable[str] | None = None,
    ) -> AssembledContext:
        ordered = sorted(files, key=lambda file: file_priority(file.path), reverse=True)
        sections: List[str] = []
        included: List[str] = []
        total = 0
        for file in ordered:
            remaining = self.budget.max_total_chars - total
            header = f"FILE: {file.path}\n{HEADER_RULE}\n"
            footer = "\n\n"
            room = min(self.budget.max_chars_per_file, remaining - len(header) - len(footer))
            if room <= 0:
                break
            section = f"{header}{_truncate(file.content, room)}{footer}"
            sections.append(section)
            included.append(file.path)
            total += len(section)

        listing_paths = list(all_paths) if all_paths is not None else [file.path for file in files]
        return AssembledContext(
            text="".join(sections).strip(),
            file_listing=build_file_listing(listing_paths),
            included_paths=included,
        )


def build_file_listing(paths: Iterable[str]) -> str:
    """Group every path by directory; top-level files come first without a heading."""
    by_dir: Dict[str, List[str]] = defaultdict(list)
    for path in paths:
        directory = path.rsplit("/", 1)[0] if "/" in path else ""
        by_dir[directory].append(path)

    lines = ["## Complete File List", ""]
    for directory in sorted(by_dir):
        if directory:
            lines.append("")
            lines.append(f"### {directory}/")
        lines.extend(f"- {path}" for path in by_dir[directory])
    return "\n".join(lines).strip() + "\n"


def _truncate(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    if limit <= len(TRUNCATION_MARKER):
        return content[:limit]
    return content[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


__all__ = ["ContextAssembler", "DEFAULT_PRIORITY", "build_file_listing", "file_priority"]
