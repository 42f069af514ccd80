"""FastAPI dependencies.

Each getter builds the default service. Tests replace them through
``app.dependency_overrides``.
"""

from memo_triage.services.chunk_orchestrator import ChunkOrchestrator
from memo_triage.services.classification_service import ClassificationService
from memo_triage.services.summary_aggregator import SummaryAggregator


def get_chunk_orchestrator() -> ChunkOrchestrator:
    return ChunkOrchestrator()


def get_summary_aggregator() -> SummaryAggregator:
    return SummaryAggregator()


def get_classification_service() -> ClassificationService:
    return ClassificationService()


__all__ = ["get_chunk_orchestrator", "get_summary_aggregator", "get_classification_service"]
