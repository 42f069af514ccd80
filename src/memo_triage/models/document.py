"""Document models for uploads and per-session processing state."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from memo_triage.models.summary import SummaryResult


class UploadedFile(BaseModel):
    """An uploaded file. Immutable once received."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Original filename")
    content_type: str = Field(default="application/octet-stream", description="Media type")
    size: int = Field(default=0, ge=0, description="Size in bytes")
    data: bytes = Field(default=b"", description="Raw file bytes")

    @property
    def size_mb(self) -> float:
        """Size in megabytes, rounded to two decimals."""
        return round(self.size / (1024 * 1024), 2)


class DocumentStatus(str, Enum):
    """Status values for document parsing."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class SummaryStatus(str, Enum):
    """Status values for document summarization."""

    PENDING = "pending"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"
    FAILED = "failed"


class DocumentRecord(BaseModel):
    """Session-level state for one uploaded file."""

    file: UploadedFile
    status: DocumentStatus = DocumentStatus.PENDING
    parsed_data: Any = Field(default=None, description="Parsed response (whole document)")
    error: Optional[str] = None
    retry_count: int = Field(default=0, ge=0)
    chunks: List[Any] = Field(
        default_factory=list, description="Chunk texts or parsed chunk responses"
    )
    is_chunked: bool = False
    manually_chunked: bool = Field(
        default=False, description="Set when the user asked for a chunked retry"
    )
    selected_chunk_count: int = Field(default=3, ge=1)
    summary_status: SummaryStatus = SummaryStatus.PENDING
    summary: Optional[SummaryResult] = None

    @property
    def filename(self) -> str:
        return self.file.filename

    def summary_input(self) -> List[Any]:
        """Content handed to summarization: the chunks, or the whole parsed document."""
        if self.is_chunked and self.chunks:
            return list(self.chunks)
        return [self.parsed_data]
