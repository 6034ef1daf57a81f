"""Path denylist applied to remote repository listings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Sequence, Tuple

# Entries match whole path segments; entries containing "/" match a run of segments.
DEFAULT_EXCLUDED_NAMES: Tuple[str, ...] = (
    # VCS metadata
    ".git",
    ".hg",
    ".svn",
    ".gitlab",
    ".circleci",
    ".husky",
    # dependency and build output
    "node_modules",
    ".npm",
    ".yarn",
    ".pnp",
    "dist",
    "build",
    "out",
    "target",
    ".next",
    ".vercel",
    ".turbo",
    ".expo",
    ".expo-shared",
    ".gradle",
    ".dart_tool",
    ".mvn",
    "CMakeFiles",
    "bin",
    "obj",
    "ios/Pods",
    "android/app/build",
    "cypress/screenshots",
    "cypress/videos",
    # lockfiles
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Pipfile.lock",
    "Cargo.lock",
    "composer.lock",
    "Gemfile.lock",
    "pubspec.lock",
    "go.sum",
    # caches and virtualenvs
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".tox",
    ".venv",
    "venv",
    ".cache",
    "coverage",
    "htmlcov",
    ".coverage",
    # IDE and OS files
    ".vscode",
    ".idea",
    ".vs",
    ".settings",
    ".project",
    ".classpath",
    ".DS_Store",
    "Thumbs.db",
    # environment files
    ".env",
    ".env.local",
    ".env.development",
    ".env.production",
    ".env.test",
    # logs
    "npm-debug.log",
    "yarn-error.log",
    "pnpm-debug.log",
)

DEFAULT_EXCLUDED_EXTENSIONS: Tuple[str, ...] = (
    # images
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".svg",
    ".ico",
    ".bmp",
    # fonts
    ".ttf",
    ".woff",
    ".woff2",
    ".otf",
    ".eot",
    # audio and video
    ".mp4",
    ".mp3",
    ".wav",
    ".mov",
    ".avi",
    # archives
    ".zip",
    ".rar",
    ".tar.gz",
    ".tgz",
    ".7z",
    # compiled artifacts
    ".pyc",
    ".pyo",
    ".pyd",
    ".class",
    ".jar",
    ".war",
    ".ear",
    ".o",
    ".a",
    ".so",
    ".dll",
    ".dylib",
    ".exe",
    ".bin",
    ".elf",
    ".obj",
    ".ilk",
    ".pdb",
    ".exp",
    ".lib",
    ".dex",
    ".apk",
    ".aab",
    ".ipa",
    ".iml",
    # backups, temp files, logs and databases
    ".swp",
    ".swo",
    ".bak",
    ".log",
    ".tmp",
    ".sqlite3",
    ".db",
    ".db-journal",
    # documents
    ".pdf",
)


@dataclass(frozen=True)
class ExclusionPolicy:
    """Decides whether a repository-relative path is skipped.

    Comparisons are case-sensitive. A path is excluded once even when several
    entries match it.
    """

    names: FrozenSet[str] = frozenset(DEFAULT_EXCLUDED_NAMES)
    extensions: FrozenSet[str] = frozenset(DEFAULT_EXCLUDED_EXTENSIONS)

    def extend(
        self,
        *,
        names: Iterable[str] = (),
        extensions: Iterable[str] = (),
    ) -> "ExclusionPolicy":
        extra_names = {_normalise_name(name) for name in names if _normalise_name(name)}
        extra_extensions = {_normalise_extension(ext) for ext in extensions if ext.strip()}
        return ExclusionPolicy(
            names=self.names | frozenset(extra_names),
            extensions=self.extensions | frozenset(extra_extensions),
        )

    def is_excluded(self, path: str) -> bool:
        normalised = path.replace("\\", "/").strip("/")
        if not normalised:
            return True
        if normalised.endswith(tuple(self.extensions)):
            return True
        segments = normalised.split("/")
        for name in self.names:
            if "/" in name:
                if _contains_run(segments, name.split("/")):
                    return True
            elif name in segments:
                return True
        return False

    def filter(self, paths: Iterable[str]) -> list[str]:
        return [path for path in paths if not self.is_excluded(path)]


def _contains_run(segments: Sequence[str], run: Sequence[str]) -> bool:
    width = len(run)
    for start in range(len(segments) - width + 1):
        if list(segments[start : start + width]) == list(run):
            return True
    return False


def _normalise_name(name: str) -> str:
    return name.strip().strip("/")


def _normalise_extension(ext: str) -> str:
    cleaned = ext.strip()
    if cleaned.startswith("*"):
        cleaned = cleaned[1:]
    if not cleaned.startswith("."):
        cleaned = f".{cleaned}"
    return cleaned


DEFAULT_POLICY = ExclusionPolicy()

__all__ = [
    "DEFAULT_EXCLUDED_EXTENSIONS",
    "DEFAULT_EXCLUDED_NAMES",
    "DEFAULT_POLICY",
    "ExclusionPolicy",
]
