"""Content normalization: any parsed document content to canonical text."""

import json
import reprlib
from typing import Any

from memo_triage.models.content import StructuredContent, TextContent
from memo_triage.utils.logging import get_logger

logger = get_logger("normalizer")


def to_text(content: Any) -> str:
    """
    Convert document content to the canonical text used for measuring and chunking.

    Strings (and ``TextContent``) are returned unchanged. Structured content and any
    other JSON-like value are pretty-printed as JSON with a 2-space indent, so the
    same value always yields the same text. Never raises.

    Args:
        content: A string, ``TextContent``, ``StructuredContent`` or raw JSON-like value

    Returns:
        Canonical text
    """
    if isinstance(content, str):
        return content
    if isinstance(content, TextContent):
        return content.text
    if isinstance(content, StructuredContent):
        content = content.data

    try:
        return json.dumps(content, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError) as e:
        # Circular references or non-string keys
        logger.debug(f"Falling back to str() for {type(content).__name__}: {e}")
    except RecursionError:
        logger.warning(f"Content too deeply nested to serialize: {type(content).__name__}")
        return reprlib.repr(content)

    try:
        return str(content)
    except RecursionError:
        return reprlib.repr(content)
