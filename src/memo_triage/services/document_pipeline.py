"""Session-level document pipeline: parse, size-normalize, summarize."""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from memo_triage.clients.juicer_client import JuicerClient
from memo_triage.config import get_settings
from memo_triage.models.document import (
    DocumentRecord,
    DocumentStatus,
    SummaryStatus,
    UploadedFile,
)
from memo_triage.models.summary import SummaryResult
from memo_triage.services.chunk_orchestrator import ChunkOrchestrator
from memo_triage.services.summary_aggregator import ProgressCallback, SummaryAggregator
from memo_triage.utils.errors import ParsingError, ValidationError
from memo_triage.utils.logging import get_logger, log_error

logger = get_logger("document_pipeline")

SleepFn = Callable[[float], Awaitable[None]]


class DocumentPipeline:
    """
    Drive uploaded files through parsing, chunking and summarization.

    Parsed responses larger than AUTO_CHUNK_MAX_TOKENS are chunked automatically,
    unless the user already asked for a chunked retry. A manually chunked
    document keeps the parts the user asked for, even if a part is still over
    the auto-chunk budget (such parts are logged).
    """

    def __init__(
        self,
        juicer_client: Optional[JuicerClient] = None,
        orchestrator: Optional[ChunkOrchestrator] = None,
        aggregator: Optional[SummaryAggregator] = None,
        document_delay: Optional[float] = None,
        sleep: Optional[SleepFn] = None,
    ):
        self.settings = get_settings()
        self.juicer_client = juicer_client or JuicerClient(self.settings)
        self.orchestrator = orchestrator or ChunkOrchestrator()
        self.aggregator = aggregator or SummaryAggregator()
        self.document_delay = (
            document_delay
            if document_delay is not None
            else self.settings.summarization.document_delay_seconds
        )
        self.sleep = sleep or asyncio.sleep

    def new_record(self, file: UploadedFile) -> DocumentRecord:
        return DocumentRecord(
            file=file, selected_chunk_count=self.settings.chunking.default_retry_chunk_count
        )

    async def ingest(self, files: List[UploadedFile]) -> List[DocumentRecord]:
        """
        Parse files concurrently and auto-chunk oversized results.

        Returns:
            One record per file, in input order, with status success or error
        """
        records = [self.new_record(f) for f in files]
        for record in records:
            record.status = DocumentStatus.PROCESSING

        results = await self.juicer_client.upload_files(files)
        for record, result in zip(records, results):
            if result.success:
                self._apply_parsed(record, result.data)
            else:
                record.status = DocumentStatus.ERROR
                record.error = result.error

        return records

    async def retry(
        self,
        record: DocumentRecord,
        chunk_count: Optional[int] = None,
        as_original: bool = False,
    ) -> DocumentRecord:
        """
        Retry parsing a document, optionally split into ``chunk_count`` parts.

        A chunked retry decodes the file as text, derives the per-part budget from
        the requested count, uploads each part as ``<name>_chunk_<n>`` and keeps
        the parsed parts separate. A plain retry re-uploads the original file.

        Raises:
            ValidationError: If the retry limit is reached, chunk_count is invalid, or a
                chunked retry has no text to split
        """
        max_retries = self.settings.chunking.max_upload_retries
        if record.retry_count >= max_retries:
            raise ValidationError(
                f"Maximum retry attempts reached ({max_retries}/{max_retries})",
                details={"filename": record.filename},
            )
        if chunk_count is not None:
            if chunk_count < 1:
                raise ValidationError(
                    "chunk_count must be at least 1", errors={"chunk_count": chunk_count}
                )
            record.selected_chunk_count = chunk_count

        should_chunk = not as_original and record.selected_chunk_count > 1
        text = record.file.data.decode("utf-8", errors="replace") if should_chunk else ""
        if should_chunk and not text.strip():
            raise ValidationError("No content to chunk", details={"filename": record.filename})

        record.retry_count += 1
        record.status = DocumentStatus.PROCESSING
        record.error = None

        try:
            if should_chunk:
                await self._retry_chunked(record, text)
            else:
                logger.info(f"Retry {record.retry_count}: re-uploading {record.filename}")
                data = await self.juicer_client.upload_file(
                    record.filename, record.file.data, record.file.content_type
                )
                record.manually_chunked = False
                self._apply_parsed(record, data)
        except ParsingError as e:
            logger.error(f"Retry {record.retry_count} failed for {record.filename}: {e.message}")
            record.status = DocumentStatus.ERROR
            record.error = e.message

        return record

    async def _retry_chunked(self, record: DocumentRecord, text: str) -> None:
        chunk_count = record.selected_chunk_count
        logger.info(
            f"Retry {record.retry_count}: chunking {record.filename} into {chunk_count} parts"
        )
        plan = self.orchestrator.plan_for_chunk_count(text, chunk_count)
        logger.info(f"Created {len(plan.chunks)} actual chunks, uploading each separately")

        parts: List[Any] = []
        for index, chunk in enumerate(plan.chunks):
            logger.info(f"Uploading chunk {index + 1}/{len(plan.chunks)}")
            parts.append(
                await self.juicer_client.upload_file(
                    f"{record.filename}_chunk_{index + 1}",
                    chunk.encode("utf-8"),
                    record.file.content_type,
                )
            )

        auto_max = self.settings.chunking.auto_chunk_max_tokens
        for index, part in enumerate(parts):
            if self.orchestrator.needs_chunking(part, max_tokens=auto_max):
                logger.warning(
                    f"Manually chunked part {index + 1} of {record.filename} is still over "
                    f"{auto_max} tokens; keeping it as requested"
                )

        record.parsed_data = None
        record.chunks = parts
        record.is_chunked = True
        record.manually_chunked = True
        record.status = DocumentStatus.SUCCESS

    def _apply_parsed(self, record: DocumentRecord, data: Any) -> None:
        record.parsed_data = data
        record.status = DocumentStatus.SUCCESS
        record.error = None
        if record.manually_chunked:
            return

        plan = self.orchestrator.rechunk_response(data)
        if plan.needs_chunking:
            logger.info(
                f"Auto-chunking {record.filename}: {plan.original_token_count} tokens "
                f"-> {plan.chunk_count} chunks"
            )
            record.chunks = plan.chunks
            record.is_chunked = True
        else:
            record.chunks = []
            record.is_chunked = False

    async def summarize(
        self,
        records: List[DocumentRecord],
        extraction_scope: str,
        scope_description: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[SummaryResult]:
        """
        Summarize every successfully parsed record, one document at a time.

        Each record's summary status is set independently; a failed document
        does not stop the others.
        """
        eligible = [r for r in records if r.status == DocumentStatus.SUCCESS]
        logger.info(f"Summarizing {len(eligible)} of {len(records)} documents")

        results: List[SummaryResult] = []
        for index, record in enumerate(eligible):
            record.summary_status = SummaryStatus.SUMMARIZING
            try:
                result = await self.aggregator.summarize_document(
                    record.filename,
                    record.summary_input(),
                    extraction_scope,
                    scope_description,
                    on_progress=on_progress,
                )
            except Exception as e:
                log_error(e, context={"filename": record.filename, "stage": "summarize"})
                result = SummaryResult.failed(record.filename, str(e) or type(e).__name__)
            record.summary = result
            record.summary_status = (
                SummaryStatus.COMPLETED if result.success else SummaryStatus.FAILED
            )
            results.append(result)

            if index < len(eligible) - 1 and self.document_delay > 0:
                await self.sleep(self.document_delay)

        return results
