"""Services package."""

from memo_triage.services.chunk_orchestrator import ChunkOrchestrator
from memo_triage.services.chunking_service import TokenChunker
from memo_triage.services.classification_service import ClassificationService
from memo_triage.services.document_pipeline import DocumentPipeline
from memo_triage.services.normalizer import to_text
from memo_triage.services.summarization_service import SummarizationService
from memo_triage.services.summary_aggregator import SummaryAggregator
from memo_triage.services.text_metrics import analyze_text, count_tokens, count_words

__all__ = [
    "ChunkOrchestrator",
    "ClassificationService",
    "DocumentPipeline",
    "SummarizationService",
    "SummaryAggregator",
    "TokenChunker",
    "analyze_text",
    "count_tokens",
    "count_words",
    "to_text",
]
