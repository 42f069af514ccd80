"""Settings for the memo triage service, loaded from the environment with pydantic-settings."""

import logging
import warnings
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ChunkingSettings(BaseSettings):
    """Token budget and overlap configuration for document chunking."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    max_tokens_per_chunk: int = Field(
        default=10000,
        description="Estimated token budget per chunk. Env var: MAX_TOKENS_PER_CHUNK",
    )
    overlap_tokens: int = Field(
        default=200,
        description="Estimated tokens repeated at the head of the next chunk. Env var: OVERLAP_TOKENS",
    )
    min_tokens_per_chunk: int = Field(
        default=500,
        description="Floor for budgets derived from a requested chunk count. Env var: MIN_TOKENS_PER_CHUNK",
    )
    max_overlap_words: int = Field(
        default=50,
        description="Upper bound on words tracked for overlap. Env var: MAX_OVERLAP_WORDS",
    )
    auto_chunk_max_tokens: int = Field(
        default=10000,
        description="Budget used to auto-chunk parsed documents after upload. Env var: AUTO_CHUNK_MAX_TOKENS",
    )
    default_retry_chunk_count: int = Field(
        default=3,
        description="Chunk count preselected for a chunked retry. Env var: DEFAULT_RETRY_CHUNK_COUNT",
    )
    max_upload_retries: int = Field(
        default=10,
        description="Retries allowed per uploaded document. Env var: MAX_UPLOAD_RETRIES",
    )

    @field_validator(
        "max_tokens_per_chunk",
        "min_tokens_per_chunk",
        "max_overlap_words",
        "auto_chunk_max_tokens",
        "default_retry_chunk_count",
        "max_upload_retries",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Budgets and counts must be positive."""
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("overlap_tokens")
    @classmethod
    def validate_overlap(cls, v: int) -> int:
        """Overlap may be zero but never negative."""
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_overlap_below_budget(self) -> "ChunkingSettings":
        """OVERLAP_TOKENS must stay below MAX_TOKENS_PER_CHUNK."""
        if self.overlap_tokens >= self.max_tokens_per_chunk:
            raise ValueError(
                f"OVERLAP_TOKENS ({self.overlap_tokens}) must be less than "
                f"MAX_TOKENS_PER_CHUNK ({self.max_tokens_per_chunk})"
            )
        return self


class LLMSettings(BaseSettings):
    """LLM configuration for classification and summarization calls."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    llm_model_name: str = Field(
        default="groq/llama-3.1-70b-versatile",
        description="Model name in LiteLLM format. Env var: LLM_MODEL_NAME",
    )
    groq_api_key: Optional[str] = Field(
        default=None, description="Groq API key. Env var: GROQ_API_KEY"
    )
    llm_temperature: float = Field(
        default=0.1, description="Sampling temperature. Env var: LLM_TEMPERATURE"
    )
    llm_timeout: float = Field(
        default=60.0, description="Per-request timeout in seconds. Env var: LLM_TIMEOUT"
    )

    @property
    def model_name(self) -> str:
        """Get the model name (shorthand)."""
        return self.llm_model_name

    @property
    def temperature(self) -> float:
        """Get the sampling temperature (shorthand)."""
        return self.llm_temperature

    @property
    def timeout(self) -> float:
        """Get the request timeout (shorthand)."""
        return self.llm_timeout

    @property
    def has_groq(self) -> bool:
        """Check if Groq is configured."""
        return bool(self.groq_api_key)

    @property
    def is_configured(self) -> bool:
        """Check if credentials for the selected model are present."""
        if self.llm_model_name.startswith("groq/"):
            return self.has_groq
        return True


class RetrySettings(BaseSettings):
    """Retry configuration for remote AI calls."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    max_retries: int = Field(
        default=3, description="Maximum attempts per remote call. Env var: MAX_RETRIES"
    )
    retry_initial_delay: float = Field(
        default=1.0,
        description="Delay before the second attempt in seconds. Env var: RETRY_INITIAL_DELAY",
    )
    retry_max_delay: float = Field(
        default=30.0,
        description="Maximum delay between attempts in seconds. Env var: RETRY_MAX_DELAY",
    )


class ClassificationSettings(BaseSettings):
    """Document classification configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    classification_batch_size: int = Field(
        default=10,
        description="Documents per classification request. Env var: CLASSIFICATION_BATCH_SIZE",
    )
    classification_preview_chars: int = Field(
        default=1500,
        description="Characters of content sent per document. Env var: CLASSIFICATION_PREVIEW_CHARS",
    )
    classification_spreadsheet_preview_chars: int = Field(
        default=3000,
        description="Characters sent for spreadsheets (sheet names matter). "
        "Env var: CLASSIFICATION_SPREADSHEET_PREVIEW_CHARS",
    )
    fallback_confidence: float = Field(
        default=0.5,
        description="Confidence assigned when the classification API is unavailable",
    )
    missing_confidence: float = Field(
        default=0.3,
        description="Confidence assigned to documents the model left out of its answer",
    )

    @property
    def batch_size(self) -> int:
        """Get batch size (shorthand)."""
        return self.classification_batch_size


class SummarizationSettings(BaseSettings):
    """Summarization throttling configuration."""

    model_config = SettingsConfigDict(env_prefix="SUMMARY_", case_sensitive=False)

    chunk_delay_seconds: float = Field(
        default=0.5,
        description="Pause between chunk calls of one document. Env var: SUMMARY_CHUNK_DELAY_SECONDS",
    )
    document_delay_seconds: float = Field(
        default=1.0,
        description="Pause between documents. Env var: SUMMARY_DOCUMENT_DELAY_SECONDS",
    )


class JuicerSettings(BaseSettings):
    """Document parsing service (Juicer) configuration."""

    model_config = SettingsConfigDict(env_prefix="JUICER_", case_sensitive=False)

    url: str = Field(
        default="http://localhost:8080", description="Juicer service URL. Env var: JUICER_URL"
    )
    timeout: float = Field(
        default=120.0, description="Upload timeout in seconds. Env var: JUICER_TIMEOUT"
    )


class ServerSettings(BaseSettings):
    """HTTP server (uvicorn) options."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    host: str = Field(default="0.0.0.0", description="Bind address. Env var: HOST")
    port: int = Field(default=8010, description="HTTP port. Env var: PORT")
    reload: bool = Field(
        default=False, description="Auto-reload, honored in development only. Env var: RELOAD"
    )


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Top-level settings for the memo triage service.

    Each section is its own ``BaseSettings`` built per instance, so every
    ``Settings()`` re-reads the environment (and ``.env``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="memo-triage", description="Service name. Env var: APP_NAME")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment; unknown values mean development. Env var: ENVIRONMENT",
    )
    debug: bool = Field(default=False, description="Verbose third-party logging. Env var: DEBUG")
    log_level: str = Field(default="INFO", description="Package log level. Env var: LOG_LEVEL")

    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    summarization: SummarizationSettings = Field(default_factory=SummarizationSettings)
    juicer: JuicerSettings = Field(default_factory=JuicerSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def coerce_environment(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            known = {member.value for member in Environment}
            return Environment(normalized) if normalized in known else Environment.DEVELOPMENT
        return value

    @field_validator("log_level")
    @classmethod
    def coerce_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def is_development(self) -> bool:
        return self.environment is Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    def validate_configuration(self) -> None:
        """Warn (without failing) when the summarization/classification LLM lacks credentials."""
        if not self.llm.is_configured:
            warnings.warn(
                f"LLM is not configured for model {self.llm.model_name}. "
                "Set GROQ_API_KEY (or choose another LLM_MODEL_NAME).",
                UserWarning,
            )

    def validate_production_settings(self) -> None:
        """
        Refuse unsafe production configurations.

        Raises:
            ValueError: If debug is on or LLM credentials are missing in production
        """
        if not self.is_production:
            return
        if self.debug:
            raise ValueError("DEBUG must be False in production")
        if not self.llm.is_configured:
            raise ValueError("LLM credentials must be configured in production. Set GROQ_API_KEY.")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Process-wide settings, loaded on first use.

    Outside production a failed production check is only logged; in
    production it is raised so the service fails at startup.
    """
    global _settings
    if _settings is not None:
        return _settings

    settings = Settings()
    settings.validate_configuration()
    try:
        settings.validate_production_settings()
    except ValueError as e:
        logging.getLogger("memo_triage.config").error(f"Invalid configuration: {e}")
        if settings.is_production:
            raise
    _settings = settings
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
