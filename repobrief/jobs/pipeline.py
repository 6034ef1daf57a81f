"""Stage runner turning a repository locator into a generated summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from ..cancellation import CancellationToken
from ..llm.runner import GenerationClient
from ..logging import get_logger
from ..models import AssembledContext, CandidateFile, ContextBudget, SelectionConfig
from ..prompting.assembler import ContextAssembler
from ..prompting.builder import PromptBuilder
from ..rag.bm25 import compress_text
from ..rag.embedder import EmbeddingGenerator
from ..rag.selector import README_QUERY, select_mmr
from ..sources.fetcher import RepoTreeFetcher
from ..sources.locator import RepoLocator
from .progress import Checkpoint

ProgressReporter = Callable[[Checkpoint], Awaitable[None]]


@dataclass
class PipelineResult:
    """Output of a successful pipeline run."""

    content: str
    context: AssembledContext
    selected_paths: List[str] = field(default_factory=list)
    used_embeddings: bool = False


class SummaryPipeline:
    """Runs fetch, selection, assembly and generation as sequential stages.

    Fan-out happens only inside a stage. The token is checked at every stage
    boundary and the reporter is called once per checkpoint, in order.
    """

    def __init__(
        self,
        fetcher: RepoTreeFetcher,
        generator: GenerationClient,
        *,
        embedder: EmbeddingGenerator | None = None,
        selection: SelectionConfig | None = None,
        budget: ContextBudget | None = None,
        prompt_builder: PromptBuilder | None = None,
        query: str = README_QUERY,
    ) -> None:
        self.fetcher = fetcher
        self.generator = generator
        self.embedder = embedder
        self.selection = selection or SelectionConfig()
        self.budget = budget or ContextBudget()
        self.assembler = ContextAssembler(self.budget)
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.query = query
        self.logger = get_logger("jobs.pipeline")

    async def run(
        self,
        locator: RepoLocator,
        token: CancellationToken,
        report: ProgressReporter,
    ) -> PipelineResult:
        token.raise_if_cancelled()
        entries = await self.fetcher.list_files(locator)
        await report(Checkpoint.TREE_LISTED)

        token.raise_if_cancelled()
        candidates = self.fetcher.choose_candidates(entries)
        files = await self.fetcher.fetch_contents(candidates, token)
        self.logger.info(
            "Fetched %d of %d eligible files for %s", len(files), len(entries), locator.slug
        )
        await report(Checkpoint.CONTENTS_FETCHED)

        selected, used_embeddings = await self._select(files, token, report)

        token.raise_if_cancelled()
        context = self.assembler.assemble(
            self._compress_oversized(selected),
            all_paths=[entry.path for entry in entries],
        )
        await report(Checkpoint.CONTEXT_READY)

        token.raise_if_cancelled()
        prompt = self.prompt_builder.build(locator, context)
        content = await self.generator.generate(prompt)
        token.raise_if_cancelled()
        await report(Checkpoint.GENERATED)

        return PipelineResult(
            content=content,
            context=context,
            selected_paths=[file.path for file in selected],
            used_embeddings=used_embeddings,
        )

    async def _select(
        self,
        files: Sequence[CandidateFile],
        token: CancellationToken,
        report: ProgressReporter,
    ) -> tuple[List[CandidateFile], bool]:
        embedder = self.embedder
        query_vector = await self._query_vector()
        if embedder is None or query_vector is None:
            await report(Checkpoint.EMBEDDED)
            await report(Checkpoint.SELECTED)
            return list(files[: self.selection.top_k]), False

        embedded = await embedder.embed_files(files, token)
        await report(Checkpoint.EMBEDDED)
        token.raise_if_cancelled()
        selected = select_mmr(embedded, query_vector, self.selection)
        await report(Checkpoint.SELECTED)
        return list(selected), True

    async def _query_vector(self) -> Optional[tuple[float, ...]]:
        if self.embedder is None:
            return None
        try:
            return await self.embedder.embed_query(self.query)
        except Exception as exc:
            self.logger.warning("Query embedding failed, falling back to priority ranking: %s", exc)
            return None

    def _compress_oversized(self, files: Sequence[CandidateFile]) -> List[CandidateFile]:
        limit = self.budget.max_chars_per_file
        compressed: List[CandidateFile] = []
        for file in files:
            if file.length > limit:
                compressed.append(CandidateFile(path=file.path, content=compress_text(file.content)))
            else:
                compressed.append(CandidateFile(path=file.path, content=file.content))
        return compressed


__all__ = ["PipelineResult", "ProgressReporter", "SummaryPipeline"]
