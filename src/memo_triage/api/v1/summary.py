"""Smart summary endpoint."""

from typing import Any, List

from fastapi import APIRouter, Depends

from memo_triage.config import get_settings
from memo_triage.dependencies import get_chunk_orchestrator, get_summary_aggregator
from memo_triage.models.api import SmartSummaryRequest
from memo_triage.models.summary import SummaryResult
from memo_triage.services.chunk_orchestrator import ChunkOrchestrator
from memo_triage.services.summary_aggregator import SummaryAggregator
from memo_triage.utils.errors import ConfigurationError, ValidationError
from memo_triage.utils.logging import get_logger

logger = get_logger("api.summary")

router = APIRouter(tags=["summary"])


def _has_content(value: Any) -> bool:
    return value is not None and value != "" and value != {} and value != []


@router.post(
    "/smart-summary",
    response_model=SummaryResult,
    summary="Summarize a document",
    description=(
        "Summarize a whole document or pre-chunked parts of one document against an "
        "extraction scope. Whole documents over the token budget are chunked first."
    ),
)
async def smart_summary(
    request: SmartSummaryRequest,
    orchestrator: ChunkOrchestrator = Depends(get_chunk_orchestrator),
    aggregator: SummaryAggregator = Depends(get_summary_aggregator),
) -> SummaryResult:
    """
    Summarize one document.

    Summarization failures are reported in the body (``success=false``), not as
    an HTTP error.
    """
    if not get_settings().llm.is_configured:
        raise ConfigurationError("Groq API key not configured", setting="GROQ_API_KEY")

    has_document = request.document is not None
    has_chunks = request.documentChunks is not None

    if not has_document and not has_chunks:
        raise ValidationError(
            'Must provide either "document" (whole document) or "documentChunks" (array of chunks)'
        )
    if has_document and has_chunks:
        raise ValidationError('Provide either "document" or "documentChunks", not both')
    if not request.extractionScope:
        raise ValidationError("Missing or invalid extractionScope")
    if not request.scopeDescription:
        raise ValidationError("Missing or invalid scopeDescription")

    chunks: List[Any]
    if has_document:
        if not request.document.filename or not _has_content(request.document.parsedContent):
            raise ValidationError(
                "Invalid document structure - missing filename or parsedContent"
            )
        filename = request.document.filename
        plan = orchestrator.plan(request.document.parsedContent)
        chunks = plan.chunks if plan.needs_chunking else [request.document.parsedContent]
        logger.info(f"Processing whole document: {filename} ({plan.chunk_count} chunks)")
    else:
        if not request.documentChunks:
            raise ValidationError("documentChunks array cannot be empty")
        filename = request.documentChunks[0].filename
        if not filename:
            raise ValidationError("Missing filename in first chunk")
        for index, chunk in enumerate(request.documentChunks):
            if not _has_content(chunk.parsedContent):
                raise ValidationError(f"Missing parsedContent in chunk {index}")
        chunks = [chunk.parsedContent for chunk in request.documentChunks]
        logger.info(f"Processing {len(chunks)} chunks of document: {filename}")

    result = await aggregator.summarize_document(
        filename, chunks, request.extractionScope, request.scopeDescription
    )
    logger.info(
        f"Summarization complete for {filename}: {'SUCCESS' if result.success else 'FAILED'}"
    )
    return result
