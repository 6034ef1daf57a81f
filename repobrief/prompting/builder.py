"""Renders the generation prompt from an assembled context."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import AssembledContext
from ..sources.locator import RepoLocator


class PromptBuilder:
    """Fills the summary template with the file listing and packed contents."""

    TEMPLATE_NAME = "summary.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = self._create_env(self.templates_dir)

    def build(self, locator: RepoLocator, context: AssembledContext) -> str:
        template = self._env.get_template(self.TEMPLATE_NAME)
        return (
            template.render(
                owner=locator.owner,
                repo=locator.repo,
                file_listing=context.file_listing.strip(),
                included_paths=context.included_paths,
                context=context.text,
            ).strip()
            + "\n"
        )

    @staticmethod
    def _create_env(templates_dir: Path) -> Environment:
        directories = [str(templates_dir)]
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )


__all__ = ["PromptBuilder"]
