"""Document content models.

Parsed documents arrive either as plain text or as arbitrary structured JSON
returned by the parsing service. ``DocumentContent`` is the tagged union of
both shapes.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """Plain text content."""

    kind: Literal["text"] = "text"
    text: str = Field(..., description="Document text")


class StructuredContent(BaseModel):
    """Structured content (parsed JSON)."""

    kind: Literal["structured"] = "structured"
    data: Any = Field(default=None, description="Arbitrary JSON-like value")


DocumentContent = Annotated[Union[TextContent, StructuredContent], Field(discriminator="kind")]


def as_content(raw: Any) -> Union[TextContent, StructuredContent]:
    """Lift a raw value into ``DocumentContent``."""
    if isinstance(raw, (TextContent, StructuredContent)):
        return raw
    if isinstance(raw, str):
        return TextContent(text=raw)
    return StructuredContent(data=raw)
