"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

import memo_triage.config as config_module
from memo_triage.config import Environment, Settings, get_settings, reset_settings


def test_defaults(mock_settings):
    assert mock_settings.environment == Environment.DEVELOPMENT
    assert mock_settings.chunking.max_tokens_per_chunk == 10000
    assert mock_settings.chunking.overlap_tokens == 200
    assert mock_settings.chunking.min_tokens_per_chunk == 500
    assert mock_settings.chunking.max_overlap_words == 50
    assert mock_settings.chunking.auto_chunk_max_tokens == 10000
    assert mock_settings.retry.max_retries == 3
    assert mock_settings.classification.batch_size == 10
    assert mock_settings.summarization.chunk_delay_seconds == 0.5
    assert mock_settings.summarization.document_delay_seconds == 1.0
    assert mock_settings.juicer.url == "http://localhost:8080"
    assert mock_settings.server.port == 8010


def test_nested_sections_read_environment(monkeypatch):
    monkeypatch.setenv("MAX_TOKENS_PER_CHUNK", "4000")
    monkeypatch.setenv("CLASSIFICATION_BATCH_SIZE", "4")
    monkeypatch.setenv("SUMMARY_CHUNK_DELAY_SECONDS", "0")
    monkeypatch.setenv("JUICER_URL", "http://juicer:8080")

    settings = Settings()

    assert settings.chunking.max_tokens_per_chunk == 4000
    assert settings.classification.batch_size == 4
    assert settings.summarization.chunk_delay_seconds == 0
    assert settings.juicer.url == "http://juicer:8080"


@pytest.mark.parametrize(
    "name,value",
    [("MAX_TOKENS_PER_CHUNK", "0"), ("OVERLAP_TOKENS", "-1"), ("MAX_OVERLAP_WORDS", "0")],
)
def test_invalid_chunking_values_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings()


def test_zero_overlap_allowed(monkeypatch):
    monkeypatch.setenv("OVERLAP_TOKENS", "0")
    assert Settings().chunking.overlap_tokens == 0


@pytest.mark.parametrize("overlap", ["500", "800"])
def test_overlap_must_stay_below_chunk_budget(monkeypatch, overlap):
    monkeypatch.setenv("MAX_TOKENS_PER_CHUNK", "500")
    monkeypatch.setenv("OVERLAP_TOKENS", overlap)
    with pytest.raises(ValidationError, match="OVERLAP_TOKENS"):
        Settings()


def test_environment_parsing(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "PRODUCTION")
    assert Settings().is_production is True
    monkeypatch.setenv("ENVIRONMENT", "somewhere")
    assert Settings().is_development is True


def test_log_level_normalized(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Settings().log_level == "DEBUG"
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings()


def test_llm_configuration(mock_settings):
    assert mock_settings.llm.is_configured is True
    mock_settings.llm.groq_api_key = None
    assert mock_settings.llm.is_configured is False
    mock_settings.llm.llm_model_name = "openai/gpt-4o-mini"
    assert mock_settings.llm.is_configured is True


def test_validate_configuration_warns_without_key(mock_settings):
    mock_settings.llm.groq_api_key = None
    with pytest.warns(UserWarning, match="GROQ_API_KEY"):
        mock_settings.validate_configuration()


def test_production_requires_credentials(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("GROQ_API_KEY")
    settings = Settings()
    with pytest.raises(ValueError, match="GROQ_API_KEY"):
        settings.validate_production_settings()


def test_production_rejects_debug(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DEBUG", "true")
    with pytest.raises(ValueError, match="DEBUG"):
        Settings().validate_production_settings()


def test_get_settings_is_cached_until_reset(monkeypatch):
    reset_settings()
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("MAX_RETRIES", "7")
    reset_settings()
    assert config_module._settings is None
    assert get_settings().retry.max_retries == 7
