"""Document classification into memo relevance categories."""

import json
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from memo_triage.clients.llm_client import LLMClient
from memo_triage.config import get_settings
from memo_triage.models.classification import (
    Classification,
    ClassificationInput,
    DocumentCategory,
)
from memo_triage.services import prompts
from memo_triage.utils.errors import ClassificationError, LLMError, ResponseFormatError
from memo_triage.utils.logging import get_logger
from memo_triage.utils.retry import RetryPolicy

logger = get_logger("classification_service")

MISSING_REASONING = "Document not classified by API - defaulting to context category"
FALLBACK_REASONING = "Classification unavailable due to API error - defaulting to context"


def normalize_filename(filename: str) -> str:
    """Lower-case, collapse whitespace and drop spaces around dashes."""
    normalized = re.sub(r"\s+", " ", filename.lower())
    normalized = re.sub(r"\s*-\s*", "-", normalized)
    return normalized.strip()


def parse_classifications(raw: str) -> List[Dict[str, Any]]:
    """
    Parse and validate the model's JSON answer.

    Accepts ``{"classifications": [...]}``, a bare list, or a single
    classification object. Field aliases from both naming conventions are
    accepted and normalized.

    Raises:
        ResponseFormatError: If the answer is not valid JSON or an entry is malformed
    """
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ResponseFormatError(f"Failed to parse JSON response: {e}") from e

    if isinstance(parsed, dict) and "classifications" in parsed:
        entries = parsed["classifications"]
    else:
        entries = parsed
    if not isinstance(entries, list):
        entries = [entries]

    normalized = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ResponseFormatError(f"Invalid classification entry: {entry!r}")

        filename = entry.get("filename")
        if not filename or not isinstance(filename, str):
            raise ResponseFormatError(f"Invalid filename in classification: {json.dumps(entry)}")

        category = entry.get("category") or entry.get("classification")
        if not category:
            raise ResponseFormatError(f"Missing classification category: {json.dumps(entry)}")

        reasoning = entry.get("reasoning")
        if not reasoning or not isinstance(reasoning, str):
            raise ResponseFormatError(
                f"Invalid reasoning field (must be string): {json.dumps(entry)}"
            )

        confidence = entry.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ResponseFormatError(
                f"Invalid confidence field (must be number): {json.dumps(entry)}"
            )

        normalized.append(
            {
                "filename": filename.strip(),
                "category": str(category).strip().lower(),
                "reasoning": reasoning,
                "confidence": confidence,
                "relevant_chapters": entry.get("relevantChapters")
                or entry.get("relevant_chapters")
                or [],
                "key_insights": entry.get("keyInsights") or entry.get("key_insights") or [],
            }
        )
    return normalized


class ClassificationService:
    """
    Classify documents in sequential batches, one completion per batch.

    Transient failures are retried by the retry policy. When retries are
    exhausted every document in the batch gets a low-confidence ``context``
    fallback so triage can continue; configuration errors propagate.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.settings = get_settings()
        self.llm_client = llm_client or LLMClient(self.settings)
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)

    async def classify_documents(
        self,
        documents: List[ClassificationInput],
        project_context: Optional[str] = None,
    ) -> List[Classification]:
        """
        Classify documents.

        Args:
            documents: Documents with content previews and metadata
            project_context: Optional description of the investment project

        Returns:
            Classifications, one per input document
        """
        batch_size = max(1, self.settings.classification.batch_size)
        total_batches = (len(documents) + batch_size - 1) // batch_size
        classifications: List[Classification] = []

        for start in range(0, len(documents), batch_size):
            batch = documents[start : start + batch_size]
            batch_number = start // batch_size + 1
            logger.info(
                f"Processing batch {batch_number}/{total_batches} ({len(batch)} documents)"
            )
            batch_classifications = await self._process_batch(batch, project_context)
            logger.info(
                f"Batch {batch_number} processed: {len(batch_classifications)} classifications "
                f"returned for {len(batch)} documents"
            )
            classifications.extend(batch_classifications)

        return classifications

    async def regenerate_classification(
        self,
        document: ClassificationInput,
        project_context: Optional[str] = None,
    ) -> Classification:
        """Classify a single document again."""
        logger.info(f"Regenerating classification for: {document.filename}")
        classifications = await self._process_batch([document], project_context)
        if not classifications:
            raise ClassificationError(
                "Failed to regenerate classification", filename=document.filename
            )
        return classifications[0]

    async def _process_batch(
        self,
        batch: List[ClassificationInput],
        project_context: Optional[str],
    ) -> List[Classification]:
        try:
            return await self.retry_policy.run(lambda: self._classify_once(batch, project_context))
        except (LLMError, ResponseFormatError) as e:
            logger.error(f"All classification attempts exhausted. Last error: {e.message}")
            logger.warning("Using fallback classifications due to API failure")
            return [
                self._default_classification(
                    doc.filename,
                    FALLBACK_REASONING,
                    self.settings.classification.fallback_confidence,
                )
                for doc in batch
            ]

    async def _classify_once(
        self,
        batch: List[ClassificationInput],
        project_context: Optional[str],
    ) -> List[Classification]:
        messages = [
            {"role": "system", "content": prompts.CLASSIFICATION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": prompts.build_classification_prompt(
                    [self._document_info(doc) for doc in batch], project_context
                ),
            },
        ]
        raw = await self.llm_client.complete(messages, json_mode=True)
        logger.debug(f"Raw classification response: {raw}")
        return self._reconcile(parse_classifications(raw), batch)

    def _document_info(self, document: ClassificationInput) -> Dict[str, Any]:
        """Preview sent to the model. Spreadsheets get a longer preview so sheet names fit."""
        limit = (
            self.settings.classification.classification_spreadsheet_preview_chars
            if document.is_spreadsheet
            else self.settings.classification.classification_preview_chars
        )
        size = document.metadata.size
        return {
            "filename": document.filename,
            "fileType": document.metadata.type,
            "fileSize": size,
            "fileSizeMB": f"{size / 1024 / 1024:.2f}MB",
            "preview": document.content[:limit],
            "hasMoreContent": len(document.content) > limit,
        }

    def _reconcile(
        self,
        entries: List[Dict[str, Any]],
        batch: List[ClassificationInput],
    ) -> List[Classification]:
        """Match answers to input documents by filename and fill in missing ones."""
        by_exact = {doc.filename: doc for doc in batch}
        by_normalized = {normalize_filename(doc.filename): doc for doc in batch}

        results: List[Classification] = []
        matched = set()

        for entry in entries:
            doc = by_exact.get(entry["filename"])
            if doc is None:
                doc = by_normalized.get(normalize_filename(entry["filename"]))
                if doc is not None:
                    logger.info(f'Fixed filename mismatch: "{entry["filename"]}" -> "{doc.filename}"')
            if doc is None:
                logger.warning(
                    f'No document found matching classification filename: "{entry["filename"]}"'
                )
                continue
            if doc.filename in matched:
                logger.warning(f"Duplicate classification ignored for: {doc.filename}")
                continue

            try:
                results.append(Classification(**{**entry, "filename": doc.filename}))
            except PydanticValidationError as e:
                raise ResponseFormatError(
                    f"Invalid classification for {doc.filename}: {e.errors()[0]['msg']}"
                ) from e
            matched.add(doc.filename)

        missing = [doc for doc in batch if doc.filename not in matched]
        if missing:
            logger.warning(
                f"API response missing classifications for {len(missing)} documents: "
                f"{[doc.filename for doc in missing]}"
            )
            results.extend(
                self._default_classification(
                    doc.filename,
                    MISSING_REASONING,
                    self.settings.classification.missing_confidence,
                )
                for doc in missing
            )

        return results

    @staticmethod
    def _default_classification(filename: str, reasoning: str, confidence: float) -> Classification:
        return Classification(
            filename=filename,
            category=DocumentCategory.CONTEXT,
            reasoning=reasoning,
            confidence=confidence,
            relevant_chapters=[],
            key_insights=[],
        )
