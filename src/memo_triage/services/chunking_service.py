"""Token-aware text chunking with overlap."""

from collections import deque
from typing import Deque, List, Optional

from memo_triage.config import get_settings
from memo_triage.services.text_metrics import count_tokens, tokens_for_length
from memo_triage.utils.errors import ChunkingError
from memo_triage.utils.logging import get_logger

logger = get_logger("chunking_service")


def _joined_length(words: List[str]) -> int:
    """Length of ``" ".join(words)`` without building the string."""
    if not words:
        return 0
    return sum(len(w) for w in words) + len(words) - 1


class TokenChunker:
    """
    Split text into chunks whose estimated token count stays within a budget.

    Words are packed greedily. When the next word would overflow the budget the
    running chunk is emitted and the next chunk is seeded with the tail of the
    previous one (the overlap), so the downstream AI call keeps context across
    the boundary. A single word larger than the whole budget becomes its own
    oversize chunk rather than being dropped or split.

    The result is a pure function of (text, max_tokens, overlap_tokens).
    """

    def __init__(
        self,
        max_tokens: Optional[int] = None,
        overlap_tokens: Optional[int] = None,
        max_overlap_words: Optional[int] = None,
    ):
        """
        Initialize the chunker.

        Args:
            max_tokens: Default token budget per chunk (defaults to MAX_TOKENS_PER_CHUNK)
            overlap_tokens: Default overlap budget (defaults to OVERLAP_TOKENS)
            max_overlap_words: Upper bound on words carried as overlap (defaults to MAX_OVERLAP_WORDS)
        """
        chunking = get_settings().chunking
        self.max_tokens = max_tokens if max_tokens is not None else chunking.max_tokens_per_chunk
        self.overlap_tokens = (
            overlap_tokens if overlap_tokens is not None else chunking.overlap_tokens
        )
        self.max_overlap_words = (
            max_overlap_words if max_overlap_words is not None else chunking.max_overlap_words
        )

    def chunk(
        self,
        text: str,
        max_tokens: Optional[int] = None,
        overlap_tokens: Optional[int] = None,
    ) -> List[str]:
        """
        Chunk text by estimated token count.

        Args:
            text: Canonical text to split
            max_tokens: Token budget per chunk (defaults to the chunker's budget)
            overlap_tokens: Token budget for the overlap carried into the next chunk

        Returns:
            Ordered chunk texts. ``[]`` for empty input, ``[text]`` unchanged when the
            whole text already fits.

        Raises:
            ChunkingError: If the budgets are invalid
        """
        max_tokens = max_tokens if max_tokens is not None else self.max_tokens
        if overlap_tokens is None:
            overlap_tokens = self.default_overlap(max_tokens)
        self.check_budget(max_tokens, overlap_tokens)

        if not text or not isinstance(text, str):
            return []

        if count_tokens(text) <= max_tokens:
            return [text]

        words = text.split()
        chunks: List[str] = []
        current: List[str] = []
        current_length = 0
        # Most recent words seen, oldest first
        recent: Deque[str] = deque(maxlen=self.max_overlap_words)

        for word in words:
            candidate_length = current_length + len(word) + (1 if current else 0)

            if current and tokens_for_length(candidate_length) > max_tokens:
                chunks.append(" ".join(current))
                current = self._overlap(recent, len(current), word, max_tokens, overlap_tokens)
                current.append(word)
                current_length = _joined_length(current)
            else:
                current.append(word)
                current_length = candidate_length

            recent.append(word)

        if current:
            chunks.append(" ".join(current))

        if not chunks:
            return [text]

        logger.debug(
            f"Chunked text into {len(chunks)} chunks "
            f"(max_tokens={max_tokens}, overlap_tokens={overlap_tokens}, words={len(words)})"
        )
        return chunks

    def default_overlap(self, max_tokens: int) -> int:
        """Configured overlap, capped at half of ``max_tokens`` for small budgets."""
        return min(self.overlap_tokens, max(max_tokens, 0) // 2)

    @staticmethod
    def check_budget(max_tokens: int, overlap_tokens: int) -> None:
        """
        Reject budgets the chunker cannot honor.

        The overlap must stay below the chunk budget, otherwise every new chunk
        is mostly repeated text and the output grows far beyond the input.

        Raises:
            ChunkingError: If a budget is out of range
        """
        if max_tokens <= 0:
            raise ChunkingError("max_tokens must be > 0", details={"max_tokens": max_tokens})
        if overlap_tokens < 0:
            raise ChunkingError(
                "overlap_tokens must be >= 0", details={"overlap_tokens": overlap_tokens}
            )
        if overlap_tokens >= max_tokens:
            raise ChunkingError(
                "overlap_tokens must be less than max_tokens",
                details={"max_tokens": max_tokens, "overlap_tokens": overlap_tokens},
            )

    @staticmethod
    def _overlap(
        recent: Deque[str],
        chunk_word_count: int,
        next_word: str,
        max_tokens: int,
        overlap_tokens: int,
    ) -> List[str]:
        """Tail of the finished chunk to repeat at the head of the next one."""
        if overlap_tokens == 0 or chunk_word_count == 0:
            return []
        # Never reach back past the start of the chunk just emitted
        tail = list(recent)[-chunk_word_count:]
        while tail:
            overlap_length = _joined_length(tail)
            if tokens_for_length(overlap_length) <= overlap_tokens and tokens_for_length(
                overlap_length + 1 + len(next_word)
            ) <= max_tokens:
                break
            tail.pop(0)
        return tail
