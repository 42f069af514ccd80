"""Pydantic models for the HTTP API."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator

from memo_triage.models.classification import Classification, ClassificationInput


class DocumentPayload(BaseModel):
    """A parsed document (or one chunk of it) sent for summarization."""

    filename: Optional[str] = Field(None, description="Document filename")
    parsedContent: Any = Field(None, alias="parsed_content", description="Parsed content")

    model_config = {"populate_by_name": True}


class SmartSummaryRequest(BaseModel):
    """Request model for scope-focused summarization.

    Exactly one of ``document`` or ``documentChunks`` must be given. Presence is
    checked by the endpoint so malformed requests get a 400, not a schema error.
    """

    document: Optional[DocumentPayload] = Field(None, description="Whole document")
    documentChunks: Optional[List[DocumentPayload]] = Field(
        None, alias="document_chunks", description="Pre-chunked parts of one document"
    )
    extractionScope: Optional[str] = Field(None, alias="extraction_scope")
    scopeDescription: Optional[str] = Field(None, alias="scope_description")

    model_config = {"populate_by_name": True}


class ClassifyRequest(BaseModel):
    """Request model for batch classification."""

    documents: List[ClassificationInput] = Field(..., description="Documents to classify")
    projectContext: Optional[str] = Field(None, alias="project_context")

    model_config = {"populate_by_name": True}


class RegenerateClassificationRequest(BaseModel):
    """Request model for classifying one document again."""

    document: ClassificationInput
    projectContext: Optional[str] = Field(None, alias="project_context")

    model_config = {"populate_by_name": True}


class ClassifyResponse(BaseModel):
    """Response model for classification."""

    classifications: List[Classification]


class ChunkPlanRequest(BaseModel):
    """Request model for chunk planning.

    ``maxTokens`` and ``chunkCount`` are alternatives: a chunk count derives the
    budget from the measured size.
    """

    content: Any = Field(..., description="Text or structured parsed content")
    maxTokens: Optional[int] = Field(None, alias="max_tokens", gt=0)
    overlapTokens: Optional[int] = Field(None, alias="overlap_tokens", ge=0)
    chunkCount: Optional[int] = Field(
        None, alias="chunk_count", ge=1, description="Split into roughly this many parts"
    )

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_budgets(self) -> "ChunkPlanRequest":
        if self.maxTokens is not None and self.chunkCount is not None:
            raise ValueError("Provide either maxTokens or chunkCount, not both")
        if (
            self.maxTokens is not None
            and self.overlapTokens is not None
            and self.overlapTokens >= self.maxTokens
        ):
            raise ValueError("overlapTokens must be less than maxTokens")
        return self


class ChunkAnalyzeRequest(BaseModel):
    """Request model for a chunking recommendation."""

    content: Any = Field(..., description="Text or structured parsed content")
