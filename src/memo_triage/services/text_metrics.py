"""Word and token estimates used to size documents for AI calls.

Token counts are an approximation (one token per four characters, rounded up)
and deliberately not a model tokenizer: they only need to be monotone in the
text length and cheap enough to evaluate once per word while chunking.
"""

from typing import Any

from memo_triage.models.chunk import TokenEstimate

CHARS_PER_TOKEN = 4


def count_words(text: Any) -> int:
    """Count whitespace-separated words. Empty or non-string input counts as 0."""
    if not text or not isinstance(text, str):
        return 0
    return len(text.split())


def tokens_for_length(length: int) -> int:
    """Token estimate for a text of ``length`` characters."""
    if length <= 0:
        return 0
    return (length + CHARS_PER_TOKEN - 1) // CHARS_PER_TOKEN


def count_tokens(text: Any) -> int:
    """Approximate token count: ceil(len(text) / 4). Empty or non-string input counts as 0."""
    if not text or not isinstance(text, str):
        return 0
    return tokens_for_length(len(text))


def analyze_text(text: Any) -> TokenEstimate:
    """Word and token counts for ``text``."""
    if not text or not isinstance(text, str):
        return TokenEstimate(word_count=0, token_count=0)
    return TokenEstimate(word_count=count_words(text), token_count=count_tokens(text))
