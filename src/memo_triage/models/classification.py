"""Classification models for investment-memo relevance triage."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentCategory(str, Enum):
    """Relevance categories for memo authoring."""

    UNIVERSAL = "universal"
    CHAPTER = "chapter"
    CONTEXT = "context"
    NOISE = "noise"


class DocumentMetadata(BaseModel):
    """Metadata sent alongside a document for classification."""

    type: str = ""
    size: int = Field(default=0, ge=0)


class ClassificationInput(BaseModel):
    """A document to classify."""

    filename: str
    content: str = ""
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    @property
    def is_spreadsheet(self) -> bool:
        file_type = self.metadata.type.lower()
        return "excel" in file_type or "spreadsheet" in file_type


class Classification(BaseModel):
    """Classification result for one document."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    category: DocumentCategory
    reasoning: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    relevant_chapters: Optional[List[str]] = Field(default=None, alias="relevantChapters")
    key_insights: Optional[List[str]] = Field(default=None, alias="keyInsights")


class ClassificationResponse(BaseModel):
    """Classification results for a set of documents."""

    classifications: List[Classification] = Field(default_factory=list)
