"""Chunk planning endpoints."""

from fastapi import APIRouter, Depends

from memo_triage.dependencies import get_chunk_orchestrator
from memo_triage.models.api import ChunkAnalyzeRequest, ChunkPlanRequest
from memo_triage.models.chunk import ChunkPlan, ChunkRecommendation
from memo_triage.services.chunk_orchestrator import ChunkOrchestrator
from memo_triage.utils.errors import ChunkingError, ValidationError

router = APIRouter(prefix="/chunking", tags=["chunking"])


@router.post(
    "/plan",
    response_model=ChunkPlan,
    summary="Plan chunks for a document",
    description=(
        "Split content by token budget. Give either maxTokens or chunkCount; with "
        "chunkCount the budget is derived from the measured size (floored at "
        "MIN_TOKENS_PER_CHUNK). overlapTokens must stay below the budget."
    ),
)
async def plan_chunks(
    request: ChunkPlanRequest,
    orchestrator: ChunkOrchestrator = Depends(get_chunk_orchestrator),
) -> ChunkPlan:
    try:
        if request.chunkCount is not None:
            return orchestrator.plan_for_chunk_count(
                request.content, request.chunkCount, overlap_tokens=request.overlapTokens
            )
        return orchestrator.plan(
            request.content, max_tokens=request.maxTokens, overlap_tokens=request.overlapTokens
        )
    except ChunkingError as e:
        # Budgets from the request that only fail once measured against the content
        raise ValidationError(e.message, details=e.details) from e


@router.post("/analyze", response_model=ChunkRecommendation, summary="Recommend chunking")
async def analyze_document(
    request: ChunkAnalyzeRequest,
    orchestrator: ChunkOrchestrator = Depends(get_chunk_orchestrator),
) -> ChunkRecommendation:
    return orchestrator.analyze(request.content)
