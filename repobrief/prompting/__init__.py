"""Context assembly and prompt rendering."""

from .assembler import ContextAssembler, build_file_listing, file_priority
from .builder import PromptBuilder

__all__ = ["ContextAssembler", "PromptBuilder", "build_file_listing", "file_priority"]
