"""Summarization calls: one scope-focused summary per chunk, one merge per document."""

from typing import Optional

from memo_triage.clients.llm_client import LLMClient
from memo_triage.config import get_settings
from memo_triage.models.summary import SummaryChunkRequest, SummaryMergeRequest
from memo_triage.services import prompts
from memo_triage.utils.logging import get_logger
from memo_triage.utils.retry import RetryPolicy

logger = get_logger("summarization_service")


class SummarizationService:
    """Remote summarization boundary. Every call goes through the retry policy."""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        settings = get_settings()
        self.llm_client = llm_client or LLMClient(settings)
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)

    async def summarize_chunk(self, request: SummaryChunkRequest) -> str:
        """Summarize one chunk against the extraction scope."""
        prompt = prompts.build_summary_prompt(
            content_text=request.content_text,
            extraction_scope=request.extraction_scope,
            scope_description=request.scope_description,
            chunk_index=request.chunk_index,
            total_chunks=request.total_chunks,
        )
        messages = [
            {"role": "system", "content": prompts.SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        logger.debug(
            f"Summarizing {request.filename} chunk {request.chunk_index + 1}/{request.total_chunks}"
        )
        return await self.retry_policy.run(lambda: self.llm_client.complete(messages))

    async def merge_summaries(self, request: SummaryMergeRequest) -> str:
        """Merge partial summaries (in chunk order) into one cohesive summary."""
        messages = [
            {"role": "system", "content": prompts.MERGE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": prompts.build_merge_prompt(request.partial_summaries, request.filename),
            },
        ]
        logger.debug(
            f"Merging {len(request.partial_summaries)} partial summaries for {request.filename}"
        )
        return await self.retry_policy.run(lambda: self.llm_client.complete(messages))
