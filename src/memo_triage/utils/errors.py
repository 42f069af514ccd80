"""Exception hierarchy for the memo triage service.

Each error carries an HTTP status, a stable machine-readable code and a
``details`` dict. Keyword context passed to the constructor (``filename``,
``model``, ``setting`` and so on) is merged into ``details`` when not None.
"""

from typing import Any, Dict, Optional


class TriageException(Exception):
    """Base exception for all memo triage errors."""

    status_code: int = 500
    code: Optional[str] = None
    default_message: str = "Memo triage error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **context: Any,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.code = code or self.code or type(self).__name__
        self.details = dict(details or {})
        self.details.update({key: value for key, value in context.items() if value is not None})
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Error body returned by the API."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "status_code": self.status_code,
                "details": self.details,
            }
        }


class ChunkingError(TriageException):
    """Invalid chunking parameters (a programming error, not bad input text)."""

    code = "CHUNKING_ERROR"
    default_message = "Text chunking failed"


class ValidationError(TriageException):
    """Malformed request."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details, validation_errors=errors or None)


class ParsingError(TriageException):
    """The document parsing service rejected or failed a file. 422 unless the upstream failed."""

    status_code = 422
    code = "PARSING_ERROR"
    default_message = "Document parsing failed"


class LLMError(TriageException):
    """A completion call failed. Transient, so retried."""

    status_code = 502
    code = "LLM_ERROR"
    default_message = "LLM API call failed"


class ResponseFormatError(TriageException):
    """The model answered with unusable output. Transient, so retried."""

    status_code = 502
    code = "RESPONSE_FORMAT_ERROR"
    default_message = "Invalid response format from AI"


class ConfigurationError(TriageException):
    """Missing or invalid configuration. Never retried."""

    code = "CONFIGURATION_ERROR"
    default_message = "Service is not configured"


class ClassificationError(TriageException):
    status_code = 502
    code = "CLASSIFICATION_ERROR"
    default_message = "Document classification failed"


class SummarizationError(TriageException):
    status_code = 502
    code = "SUMMARIZATION_ERROR"
    default_message = "Summary generation failed"
