"""Summary models for scope-focused document summarization."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SummaryChunkRequest(BaseModel):
    """One remote summarization call for a single chunk."""

    content_text: str
    extraction_scope: str
    scope_description: str
    chunk_index: int = Field(..., ge=0)
    total_chunks: int = Field(..., ge=1)
    filename: str


class SummaryMergeRequest(BaseModel):
    """Remote call merging partial summaries, given in chunk order."""

    partial_summaries: List[str]
    filename: str


class SummaryResult(BaseModel):
    """Final summary record for one document."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    summary: str = ""
    chunk_count: int = Field(default=0, ge=0, alias="chunkCount")
    word_count: int = Field(default=0, ge=0, alias="wordCount")
    token_count: int = Field(default=0, ge=0, alias="tokenCount")
    success: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, filename: str, error: str) -> "SummaryResult":
        """Failure record: empty summary and zero counts."""
        return cls(filename=filename, success=False, error=error)


class SummaryStage(str, Enum):
    """Progress stages emitted while a document is summarized."""

    CHUNK_STARTED = "chunk_started"
    CHUNK_COMPLETED = "chunk_completed"
    MERGING = "merging"
    COMPLETED = "completed"
    FAILED = "failed"


class SummaryProgressEvent(BaseModel):
    """Progress notification for one document."""

    filename: str
    stage: SummaryStage
    chunk_index: Optional[int] = None
    total_chunks: int = 0
    message: str = ""
