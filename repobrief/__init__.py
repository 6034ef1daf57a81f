"""Repository summaries from fetched sources, embedding selection and an LLM."""

__version__ = "0.1.0"
