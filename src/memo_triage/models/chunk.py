"""Chunk models for document size normalization."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TokenEstimate(BaseModel):
    """Word and approximate token counts for a text."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    word_count: int = Field(default=0, ge=0, alias="wordCount")
    token_count: int = Field(default=0, ge=0, alias="tokenCount")


class ChunkPlan(BaseModel):
    """Result of planning how a document is split for downstream AI calls."""

    model_config = ConfigDict(populate_by_name=True)

    chunks: List[str] = Field(default_factory=list, description="Ordered chunk texts")
    original_token_count: int = Field(
        ..., ge=0, alias="originalTokenCount", description="Token estimate of the whole text"
    )
    chunk_count: int = Field(..., ge=0, alias="chunkCount")
    needs_chunking: bool = Field(..., alias="needsChunking")
    text: str = Field(..., description="Canonical text the plan was computed from")


class ChunkRecommendation(BaseModel):
    """Whether a document should be chunked, and roughly into how many parts."""

    model_config = ConfigDict(populate_by_name=True)

    analysis: TokenEstimate
    should_chunk: bool = Field(..., alias="shouldChunk")
    estimated_chunks: int = Field(..., ge=1, alias="estimatedChunks")
    reason: str
    text: str
