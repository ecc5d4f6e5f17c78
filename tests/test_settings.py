from __future__ import annotations

import pytest

from finance_tracker.errors import ConfigError
from finance_tracker.settings import (
    DEFAULT_OLLAMA_ENDPOINT,
    AIProvider,
    Settings,
)


def test_defaults_from_empty_environment():
    s = Settings.from_env({})
    assert s.ai_provider is AIProvider.OLLAMA
    assert s.model == "llama3.2"
    assert s.ollama_endpoint == DEFAULT_OLLAMA_ENDPOINT
    assert s.confidence_threshold == 0.75
    assert s.query_cache_ttl_seconds == 300.0
    assert s.currency_symbol == "€"
    assert s.database_url is None


def test_values_read_from_environment():
    s = Settings.from_env(
        {
            "FT_AI_PROVIDER": " OpenAI ",
            "FT_AI_MODEL": "gpt-4.1-mini",
            "FT_OLLAMA_ENDPOINT": "http://gpu-box:11434/",
            "FT_CONFIDENCE_THRESHOLD": "0.6",
            "FT_QUERY_CACHE_TTL": "60",
            "FT_CURRENCY_SYMBOL": "$",
            "DATABASE_URL": "sqlite:///ledger.db",
        }
    )
    assert s.ai_provider is AIProvider.OPENAI
    assert s.model == "gpt-4.1-mini"
    assert s.ollama_endpoint == "http://gpu-box:11434"
    assert s.confidence_threshold == 0.6
    assert s.query_cache_ttl_seconds == 60.0
    assert s.currency_symbol == "$"
    assert s.database_url == "sqlite:///ledger.db"


def test_blank_values_use_defaults():
    s = Settings.from_env({"FT_AI_MODEL": "  ", "FT_CONFIDENCE_THRESHOLD": ""})
    assert s.ai_model is None
    assert s.confidence_threshold == 0.75


def test_none_provider_has_no_model():
    assert Settings.from_env({"FT_AI_PROVIDER": "none"}).model is None


@pytest.mark.parametrize(
    "env, message",
    [
        ({"FT_AI_PROVIDER": "gemini"}, "FT_AI_PROVIDER"),
        ({"FT_CONFIDENCE_THRESHOLD": "high"}, "FT_CONFIDENCE_THRESHOLD"),
        ({"FT_CONFIDENCE_THRESHOLD": "1.5"}, "confidence_threshold"),
        ({"FT_QUERY_CACHE_TTL": "-1"}, "query_cache_ttl_seconds"),
        ({"FINANCE_TRACKER_LOG_LEVEL": "loud"}, "log level"),
    ],
)
def test_invalid_configuration_raises(env, message):
    with pytest.raises(ConfigError, match=message):
        Settings.from_env(env)


def test_with_overrides_ignores_none():
    base = Settings.from_env({"DATABASE_URL": "sqlite:///a.db"})
    s = base.with_overrides(database_url=None, ai_provider=AIProvider.NONE, ai_model=None)
    assert s.database_url == "sqlite:///a.db"
    assert s.ai_provider is AIProvider.NONE


def test_from_env_reads_process_environment(monkeypatch):
    monkeypatch.setenv("FT_AI_PROVIDER", "anthropic")
    assert Settings.from_env().ai_provider is AIProvider.ANTHROPIC


def test_log_level_read_from_environment():
    assert Settings.from_env({}).log_level == "INFO"
    assert Settings.from_env({"FINANCE_TRACKER_LOG_LEVEL": "debug"}).log_level == "debug"


def test_log_level_override_is_validated():
    with pytest.raises(ConfigError, match="log level"):
        Settings.from_env({}).with_overrides(log_level="chatty")
