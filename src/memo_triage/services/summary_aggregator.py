"""Multi-part summary aggregation for one document."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, List, Optional

from memo_triage.config import get_settings
from memo_triage.models.summary import (
    SummaryChunkRequest,
    SummaryMergeRequest,
    SummaryProgressEvent,
    SummaryResult,
    SummaryStage,
)
from memo_triage.services.normalizer import to_text
from memo_triage.services.summarization_service import SummarizationService
from memo_triage.services.text_metrics import analyze_text
from memo_triage.utils.errors import TriageException
from memo_triage.utils.logging import document_context, get_logger

logger = get_logger("summary_aggregator")

ProgressCallback = Callable[[SummaryProgressEvent], Any]
SleepFn = Callable[[float], Awaitable[None]]


class SummaryAggregator:
    """
    Summarize a document given as one or more chunks.

    Chunks are summarized sequentially, in order, with a pause between calls.
    A single chunk's summary is the final summary. Several partial summaries are
    merged in one extra call that receives them in chunk order. The result is
    all-or-nothing: if any chunk or the merge fails, the document gets a failed
    ``SummaryResult`` and no merge is attempted.
    """

    def __init__(
        self,
        summarization_service: Optional[SummarizationService] = None,
        chunk_delay: Optional[float] = None,
        sleep: Optional[SleepFn] = None,
    ):
        settings = get_settings()
        self.summarization_service = summarization_service or SummarizationService()
        self.chunk_delay = (
            chunk_delay if chunk_delay is not None else settings.summarization.chunk_delay_seconds
        )
        self.sleep = sleep or asyncio.sleep

    async def summarize_document(
        self,
        filename: str,
        chunks: List[Any],
        extraction_scope: str,
        scope_description: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SummaryResult:
        """
        Summarize one document.

        Args:
            filename: Document name, used in prompts and the result
            chunks: Chunk contents in document order (text or structured)
            extraction_scope: What to extract
            scope_description: How the scope should be interpreted
            on_progress: Optional callback (sync or async) receiving progress events

        Returns:
            SummaryResult; ``success=False`` with an error message on failure
        """
        with document_context(filename):
            return await self._summarize(
                filename, chunks, extraction_scope, scope_description, on_progress
            )

    async def _summarize(
        self,
        filename: str,
        chunks: List[Any],
        extraction_scope: str,
        scope_description: str,
        on_progress: Optional[ProgressCallback],
    ) -> SummaryResult:
        texts = [to_text(chunk) for chunk in chunks]
        total = len(texts)

        if total == 0:
            return SummaryResult.failed(filename, "No content to summarize")

        word_count = 0
        token_count = 0
        for text in texts:
            estimate = analyze_text(text)
            word_count += estimate.word_count
            token_count += estimate.token_count

        logger.info(
            f"Starting summarization for {filename}: chunks={total}, "
            f"words={word_count}, tokens={token_count}, scope={extraction_scope}"
        )

        try:
            partial_summaries: List[str] = []
            for index, text in enumerate(texts):
                await self._emit(
                    on_progress,
                    SummaryProgressEvent(
                        filename=filename,
                        stage=SummaryStage.CHUNK_STARTED,
                        chunk_index=index,
                        total_chunks=total,
                        message=f"Processing chunk {index + 1}/{total}",
                    ),
                )
                summary = await self.summarization_service.summarize_chunk(
                    SummaryChunkRequest(
                        content_text=text,
                        extraction_scope=extraction_scope,
                        scope_description=scope_description,
                        chunk_index=index,
                        total_chunks=total,
                        filename=filename,
                    )
                )
                partial_summaries.append(summary)
                await self._emit(
                    on_progress,
                    SummaryProgressEvent(
                        filename=filename,
                        stage=SummaryStage.CHUNK_COMPLETED,
                        chunk_index=index,
                        total_chunks=total,
                        message=f"Chunk {index + 1}/{total} summarized",
                    ),
                )
                if index < total - 1 and self.chunk_delay > 0:
                    await self.sleep(self.chunk_delay)

            if total == 1:
                final_summary = partial_summaries[0]
            else:
                await self._emit(
                    on_progress,
                    SummaryProgressEvent(
                        filename=filename,
                        stage=SummaryStage.MERGING,
                        total_chunks=total,
                        message=f"Merging {total} partial summaries",
                    ),
                )
                final_summary = await self.summarization_service.merge_summaries(
                    SummaryMergeRequest(partial_summaries=partial_summaries, filename=filename)
                )
        except TriageException as e:
            logger.error(f"Error summarizing document {filename}: {e.message}")
            await self._emit(
                on_progress,
                SummaryProgressEvent(
                    filename=filename,
                    stage=SummaryStage.FAILED,
                    total_chunks=total,
                    message=e.message,
                ),
            )
            return SummaryResult.failed(filename, e.message)

        await self._emit(
            on_progress,
            SummaryProgressEvent(
                filename=filename,
                stage=SummaryStage.COMPLETED,
                total_chunks=total,
                message="Summary completed",
            ),
        )
        logger.info(f"Summarization completed for {filename}")
        return SummaryResult(
            filename=filename,
            summary=final_summary,
            chunk_count=total,
            word_count=word_count,
            token_count=token_count,
            success=True,
        )

    @staticmethod
    async def _emit(callback: Optional[ProgressCallback], event: SummaryProgressEvent) -> None:
        if callback is None:
            return
        try:
            result = callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            # Progress reporting must never change the summary outcome
            logger.warning(f"Progress callback failed for {event.filename}: {e}")
