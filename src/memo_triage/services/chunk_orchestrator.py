"""Chunk planning: decide whether and how a document is split before AI calls."""

import math
from typing import Any, Optional

from memo_triage.config import get_settings
from memo_triage.models.chunk import ChunkPlan, ChunkRecommendation
from memo_triage.services.chunking_service import TokenChunker
from memo_triage.services.normalizer import to_text
from memo_triage.services.text_metrics import analyze_text, count_tokens
from memo_triage.utils.errors import ChunkingError
from memo_triage.utils.logging import get_logger

logger = get_logger("chunk_orchestrator")


class ChunkOrchestrator:
    """
    Turn arbitrary document content into a ``ChunkPlan``.

    Content is normalized to canonical text and measured once. The chunker only
    runs when the measured size exceeds the budget, so documents that already
    fit pass through untouched.
    """

    def __init__(self, chunker: Optional[TokenChunker] = None):
        self.settings = get_settings()
        self.chunker = chunker or TokenChunker()

    @property
    def max_tokens(self) -> int:
        return self.chunker.max_tokens

    @property
    def overlap_tokens(self) -> int:
        return self.chunker.overlap_tokens

    def plan(
        self,
        content: Any,
        max_tokens: Optional[int] = None,
        overlap_tokens: Optional[int] = None,
    ) -> ChunkPlan:
        """
        Plan the chunks for a document.

        Args:
            content: Raw text, structured parsed content, or ``DocumentContent``
            max_tokens: Token budget per chunk (defaults to MAX_TOKENS_PER_CHUNK)
            overlap_tokens: Overlap budget (defaults to OVERLAP_TOKENS, at most half of max_tokens)

        Returns:
            ChunkPlan with the canonical text and its chunks

        Raises:
            ChunkingError: If the budgets are invalid, e.g. overlap_tokens >= max_tokens
        """
        max_tokens = max_tokens if max_tokens is not None else self.max_tokens
        if overlap_tokens is None:
            overlap_tokens = self.chunker.default_overlap(max_tokens)
        self.chunker.check_budget(max_tokens, overlap_tokens)

        text = to_text(content)
        original_token_count = count_tokens(text)

        if original_token_count <= max_tokens:
            return ChunkPlan(
                chunks=[text],
                original_token_count=original_token_count,
                chunk_count=1,
                needs_chunking=False,
                text=text,
            )

        chunks = self.chunker.chunk(text, max_tokens=max_tokens, overlap_tokens=overlap_tokens)
        logger.info(
            f"Document split into {len(chunks)} chunks "
            f"(tokens={original_token_count}, max_tokens={max_tokens}, overlap={overlap_tokens})"
        )
        return ChunkPlan(
            chunks=chunks,
            original_token_count=original_token_count,
            chunk_count=len(chunks),
            needs_chunking=True,
            text=text,
        )

    def needs_chunking(self, content: Any, max_tokens: Optional[int] = None) -> bool:
        """Check whether the content exceeds the token budget."""
        max_tokens = max_tokens if max_tokens is not None else self.max_tokens
        return count_tokens(to_text(content)) > max_tokens

    def target_tokens_per_chunk(self, token_count: int, chunk_count: int) -> int:
        """
        Token budget that splits ``token_count`` into roughly ``chunk_count`` parts.

        Floored at MIN_TOKENS_PER_CHUNK so a large requested count never yields
        degenerate fragments.

        Raises:
            ChunkingError: If chunk_count is less than 1
        """
        if chunk_count < 1:
            raise ChunkingError(
                "chunk_count must be at least 1", details={"chunk_count": chunk_count}
            )
        return max(token_count // chunk_count, self.settings.chunking.min_tokens_per_chunk)

    def plan_for_chunk_count(
        self,
        content: Any,
        chunk_count: int,
        overlap_tokens: Optional[int] = None,
    ) -> ChunkPlan:
        """Plan chunks for a user-requested number of parts, measured on the real text."""
        token_count = count_tokens(to_text(content))
        target = self.target_tokens_per_chunk(token_count, chunk_count)
        logger.info(
            f"Planning {chunk_count} requested chunks: tokens={token_count}, target={target}"
        )
        return self.plan(content, max_tokens=target, overlap_tokens=overlap_tokens)

    def rechunk_response(self, response: Any, max_tokens: Optional[int] = None) -> ChunkPlan:
        """
        Re-measure a parsing-service response and split it when over budget.

        Structured responses are measured on their JSON text, which is what
        downstream AI calls actually receive.
        """
        max_tokens = (
            max_tokens if max_tokens is not None else self.settings.chunking.auto_chunk_max_tokens
        )
        return self.plan(response, max_tokens=max_tokens)

    def analyze(self, content: Any) -> ChunkRecommendation:
        """Recommend whether to chunk, and estimate into how many parts."""
        text = to_text(content)
        analysis = analyze_text(text)
        max_tokens = self.max_tokens
        should_chunk = analysis.token_count > max_tokens

        if should_chunk:
            per_chunk = max(max_tokens - self.overlap_tokens, 1)
            estimated_chunks = math.ceil(analysis.token_count / per_chunk)
            reason = (
                f"Document is {analysis.token_count} tokens, exceeding the {max_tokens} "
                f"token limit. Estimated {estimated_chunks} chunks needed."
            )
        else:
            estimated_chunks = 1
            reason = (
                f"Document is {analysis.token_count} tokens, which fits in a single chunk "
                f"(limit: {max_tokens} tokens)"
            )

        return ChunkRecommendation(
            analysis=analysis,
            should_chunk=should_chunk,
            estimated_chunks=estimated_chunks,
            reason=reason,
            text=text,
        )
