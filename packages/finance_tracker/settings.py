"""Runtime configuration for ``finance_tracker``.

Settings come from the process environment. Entry points load a local ``.env``
with ``python-dotenv`` before calling :meth:`Settings.from_env`; importing this
module has no side effects.

Environment variables
---------------------
- ``FT_AI_PROVIDER``: ``ollama`` (default), ``openai``, ``anthropic`` or ``none``.
- ``FT_AI_MODEL``: model name; defaults per provider (see ``DEFAULT_MODELS``).
- ``FT_OLLAMA_ENDPOINT``: base URL of the local model server.
- ``FT_CONFIDENCE_THRESHOLD``: rule confidence below which parsing escalates.
- ``FT_QUERY_CACHE_TTL``: seconds a computed answer stays cached.
- ``FT_CURRENCY_SYMBOL``: symbol used in rendered amounts.
- ``DATABASE_URL``: ledger database URL (SQLAlchemy form).
- ``FINANCE_TRACKER_LOG_LEVEL``: level name for the CLI log handler (``INFO``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum

from .errors import ConfigError
from .logging_setup import parse_level


class AIProvider(StrEnum):
    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    NONE = "none"


DEFAULT_MODELS: dict[AIProvider, str] = {
    AIProvider.OLLAMA: "llama3.2",
    AIProvider.OPENAI: "gpt-4o-mini",
    AIProvider.ANTHROPIC: "claude-3-haiku-20240307",
}

DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"
DEFAULT_CONFIDENCE_THRESHOLD = 0.75
DEFAULT_QUERY_CACHE_TTL_SECONDS = 300.0
DEFAULT_CURRENCY_SYMBOL = "€"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True, slots=True)
class Settings:
    ai_provider: AIProvider = AIProvider.OLLAMA
    ai_model: str | None = None
    ollama_endpoint: str = DEFAULT_OLLAMA_ENDPOINT
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    query_cache_ttl_seconds: float = DEFAULT_QUERY_CACHE_TTL_SECONDS
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    database_url: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        try:
            parse_level(self.log_level)
        except ValueError:
            raise ConfigError(f"unknown log level {self.log_level!r}") from None
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ConfigError("confidence_threshold must be within [0,1]")
        if self.query_cache_ttl_seconds < 0:
            raise ConfigError("query_cache_ttl_seconds must be non-negative")

    @property
    def model(self) -> str | None:
        """Effective model name (explicit override or the provider default)."""

        return self.ai_model or DEFAULT_MODELS.get(self.ai_provider)

    def with_overrides(self, **changes: object) -> Settings:
        """Return a copy with non-``None`` ``changes`` applied (CLI flags)."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        raw_provider = (env.get("FT_AI_PROVIDER") or AIProvider.OLLAMA.value).strip().lower()
        try:
            provider = AIProvider(raw_provider)
        except ValueError:
            allowed = ", ".join(p.value for p in AIProvider)
            raise ConfigError(
                f"Invalid FT_AI_PROVIDER {raw_provider!r}; must be one of: {allowed}"
            ) from None

        return cls(
            ai_provider=provider,
            ai_model=_optional_str(env.get("FT_AI_MODEL")),
            ollama_endpoint=(
                _optional_str(env.get("FT_OLLAMA_ENDPOINT")) or DEFAULT_OLLAMA_ENDPOINT
            ).rstrip("/"),
            confidence_threshold=_float(
                env, "FT_CONFIDENCE_THRESHOLD", DEFAULT_CONFIDENCE_THRESHOLD
            ),
            query_cache_ttl_seconds=_float(
                env, "FT_QUERY_CACHE_TTL", DEFAULT_QUERY_CACHE_TTL_SECONDS
            ),
            currency_symbol=_optional_str(env.get("FT_CURRENCY_SYMBOL"))
            or DEFAULT_CURRENCY_SYMBOL,
            database_url=_optional_str(env.get("DATABASE_URL")),
            log_level=_optional_str(env.get("FINANCE_TRACKER_LOG_LEVEL")) or DEFAULT_LOG_LEVEL,
        )


def _optional_str(v: str | None) -> str | None:
    if v is None:
        return None
    s = v.strip()
    return s or None


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _optional_str(env.get(key))
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None
