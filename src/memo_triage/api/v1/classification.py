"""Document classification endpoints."""

from fastapi import APIRouter, Depends

from memo_triage.dependencies import get_classification_service
from memo_triage.models.api import ClassifyRequest, ClassifyResponse, RegenerateClassificationRequest
from memo_triage.models.classification import Classification
from memo_triage.services.classification_service import ClassificationService

router = APIRouter(prefix="/classify", tags=["classification"])


@router.post(
    "",
    response_model=ClassifyResponse,
    summary="Classify documents",
    description="Classify documents into universal, chapter, context or noise.",
)
async def classify_documents(
    request: ClassifyRequest,
    service: ClassificationService = Depends(get_classification_service),
) -> ClassifyResponse:
    classifications = await service.classify_documents(request.documents, request.projectContext)
    return ClassifyResponse(classifications=classifications)


@router.post(
    "/regenerate",
    response_model=Classification,
    summary="Regenerate one classification",
)
async def regenerate_classification(
    request: RegenerateClassificationRequest,
    service: ClassificationService = Depends(get_classification_service),
) -> Classification:
    return await service.regenerate_classification(request.document, request.projectContext)
