"""LLM client for classification and summarization calls using LiteLLM."""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from litellm import acompletion

from memo_triage.config import Settings, get_settings
from memo_triage.utils.errors import ConfigurationError, LLMError
from memo_triage.utils.logging import get_logger

logger = get_logger("llm_client")

CompletionFn = Callable[..., Awaitable[Any]]


class LLMClient:
    """
    Single-shot chat completion client.

    One call to ``complete`` is one attempt: retries belong to the caller's
    ``RetryPolicy``. Missing credentials raise ``ConfigurationError`` (never
    retried); every other provider failure is wrapped in ``LLMError``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        completion_fn: Optional[CompletionFn] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Application settings (defaults to the global settings)
            completion_fn: Coroutine with the ``litellm.acompletion`` signature
        """
        self.settings = settings or get_settings()
        self.model = self.settings.llm.model_name
        self._completion_fn = completion_fn

    def _validate_configuration(self) -> None:
        if self.model.startswith("groq/") and not self.settings.llm.has_groq:
            raise ConfigurationError(
                f"Groq API key not configured for model {self.model}",
                setting="GROQ_API_KEY",
            )

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message text.

        Args:
            messages: Chat messages with 'role' and 'content'
            temperature: Sampling temperature (defaults to LLM_TEMPERATURE)
            json_mode: Ask the provider for a JSON object response

        Returns:
            The assistant message content

        Raises:
            ConfigurationError: If credentials for the model are missing
            LLMError: If the call fails or returns no content
        """
        self._validate_configuration()

        params: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": (
                temperature if temperature is not None else self.settings.llm.temperature
            ),
            "timeout": self.settings.llm.timeout,
        }
        if json_mode:
            params["response_format"] = {"type": "json_object"}
        if self.model.startswith("groq/"):
            params["api_key"] = self.settings.llm.groq_api_key

        completion_fn = self._completion_fn or acompletion
        try:
            logger.debug(f"Calling LLM model: {self.model}, json_mode={json_mode}")
            response = await completion_fn(**params)
        except Exception as e:
            logger.error(
                f"LLM call failed for model {self.model}: {e}",
                extra={"model": self.model, "error_type": type(e).__name__},
            )
            raise LLMError(
                message=f"LLM call failed: {str(e)}",
                model=self.model,
                details={"error_type": type(e).__name__, "error_message": str(e)},
            ) from e

        content = self._extract_content(response)
        if not content:
            raise LLMError("No response content from LLM", model=self.model)
        return content

    @staticmethod
    def _extract_content(response: Any) -> Optional[str]:
        """Pull the first choice's message content from a dict or ModelResponse."""
        try:
            if isinstance(response, dict):
                return response["choices"][0]["message"]["content"]
            return response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError):
            return None
