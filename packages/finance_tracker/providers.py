"""Model capability providers.

Every provider implements the :class:`TextGenerator` protocol:

- ``generate_structured(prompt, schema)`` returns a JSON object constrained to
  ``schema``.
- ``generate_text(prompt)`` returns free text.

Providers are chosen once at startup by :func:`create_generator` and injected
into the pipelines. Any failure (SDK error, empty output, non-JSON output)
raises :class:`~finance_tracker.errors.GenerationError`. Each SDK client is
built with ``max_retries=1``; no further retry happens at this layer.

No side effects occur at import time (no client creation, no environment
reads).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol

from anthropic import Anthropic
from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam
from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .errors import ConfigError, GenerationError
from .logging_setup import get_logger, log_event
from .prompting import StructuredSchema
from .settings import AIProvider, Settings

_MAX_RETRIES = 1
_ANTHROPIC_MAX_TOKENS = 1024

_logger = get_logger("finance_tracker.providers")


class TextGenerator(Protocol):
    def generate_structured(
        self, prompt: str, schema: StructuredSchema
    ) -> Mapping[str, Any]: ...

    def generate_text(self, prompt: str) -> str: ...


# ---- Internal helpers --------------------------------------------------------


def _decode_json_mapping(text: str | None) -> Mapping[str, Any]:
    if not text or not isinstance(text, str):
        raise GenerationError("model returned no text output")
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError("model output was not valid JSON per the requested schema") from e
    if not isinstance(decoded, Mapping):
        raise GenerationError("model output was JSON but not an object")
    return decoded


def _responses_output_text(resp: Any) -> str | None:
    """Locate the text of an OpenAI Responses API result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``.
    """

    text: str | None = getattr(resp, "output_text", None)
    if text:
        return text
    output = getattr(resp, "output", None)
    if not output:
        return None
    content = getattr(output[0], "content", None)
    if not content:
        return None
    txt_obj = getattr(content[0], "text", None)
    if isinstance(txt_obj, str):
        return txt_obj
    # Some SDK versions expose text as an object with a ``value`` string.
    maybe_val = getattr(txt_obj, "value", None)
    return maybe_val if isinstance(maybe_val, str) else None


def _require_text(text: str | None) -> str:
    if not text or not text.strip():
        raise GenerationError("model returned empty text")
    return text.strip()


# ---- Providers ---------------------------------------------------------------


class OpenAIGenerator:
    """Hosted OpenAI models through the Responses API."""

    def __init__(self, model: str, *, client: OpenAI | None = None) -> None:
        self.model = model
        self._client = client if client is not None else OpenAI(max_retries=_MAX_RETRIES)

    def generate_structured(self, prompt: str, schema: StructuredSchema) -> Mapping[str, Any]:
        response_format: ResponseFormatTextJSONSchemaConfigParam = {
            "type": "json_schema",
            "name": schema.name,
            "description": schema.description,
            "schema": dict(schema.schema),
            "strict": True,
        }
        try:
            resp = self._client.responses.create(
                model=self.model,
                input=prompt,
                text=ResponseTextConfigParam(format=response_format),
            )
        except Exception as e:  # noqa: BLE001 - SDK raises many types
            raise GenerationError(f"openai structured call failed: {e}") from e
        return _decode_json_mapping(_responses_output_text(resp))

    def generate_text(self, prompt: str) -> str:
        try:
            resp = self._client.responses.create(model=self.model, input=prompt)
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"openai text call failed: {e}") from e
        return _require_text(_responses_output_text(resp))


class OllamaGenerator:
    """Local models served by Ollama through its OpenAI-compatible endpoint."""

    def __init__(self, model: str, *, endpoint: str, client: OpenAI | None = None) -> None:
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        if client is None:
            # Ollama ignores the key but the SDK requires one.
            client = OpenAI(
                base_url=f"{self.endpoint}/v1", api_key="ollama", max_retries=_MAX_RETRIES
            )
        self._client = client

    def _complete(self, prompt: str, **extra: Any) -> str | None:
        resp = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            **extra,
        )
        if not resp.choices:
            return None
        return resp.choices[0].message.content

    def generate_structured(self, prompt: str, schema: StructuredSchema) -> Mapping[str, Any]:
        try:
            text = self._complete(
                prompt,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": schema.name,
                        "description": schema.description,
                        "schema": dict(schema.schema),
                        "strict": True,
                    },
                },
            )
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"ollama structured call failed: {e}") from e
        return _decode_json_mapping(text)

    def generate_text(self, prompt: str) -> str:
        try:
            text = self._complete(prompt)
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"ollama text call failed: {e}") from e
        return _require_text(text)


class AnthropicGenerator:
    """Hosted Anthropic models through the Messages API.

    Structured output forces a single tool whose ``input_schema`` is the
    requested schema; the tool input is the result.
    """

    def __init__(self, model: str, *, client: Anthropic | None = None) -> None:
        self.model = model
        self._client = client if client is not None else Anthropic(max_retries=_MAX_RETRIES)

    def generate_structured(self, prompt: str, schema: StructuredSchema) -> Mapping[str, Any]:
        try:
            message = self._client.messages.create(
                model=self.model,
                max_tokens=_ANTHROPIC_MAX_TOKENS,
                tools=[
                    {
                        "name": schema.name,
                        "description": schema.description,
                        "input_schema": dict(schema.schema),
                    }
                ],
                tool_choice={"type": "tool", "name": schema.name},
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"anthropic structured call failed: {e}") from e

        for block in message.content:
            if getattr(block, "type", None) == "tool_use":
                payload = getattr(block, "input", None)
                if isinstance(payload, Mapping):
                    return payload
        raise GenerationError("anthropic response carried no tool_use block")

    def generate_text(self, prompt: str) -> str:
        try:
            message = self._client.messages.create(
                model=self.model,
                max_tokens=_ANTHROPIC_MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:  # noqa: BLE001
            raise GenerationError(f"anthropic text call failed: {e}") from e
        text = "".join(
            getattr(block, "text", "")
            for block in message.content
            if getattr(block, "type", None) == "text"
        )
        return _require_text(text)


def create_generator(settings: Settings) -> TextGenerator | None:
    """Build the provider named by ``settings``; ``None`` when models are disabled."""

    provider = settings.ai_provider
    model = settings.model
    if provider is AIProvider.NONE:
        log_event(_logger, "providers:disabled")
        return None
    if not model:
        raise ConfigError(f"no model configured for provider {provider.value!r}")

    log_event(_logger, "providers:create", provider=provider, model=model)
    try:
        if provider is AIProvider.OPENAI:
            return OpenAIGenerator(model)
        if provider is AIProvider.ANTHROPIC:
            return AnthropicGenerator(model)
        return OllamaGenerator(model, endpoint=settings.ollama_endpoint)
    except Exception as e:  # noqa: BLE001 - e.g. missing API key at client construction
        raise ConfigError(f"cannot create {provider.value} client: {e}") from e


__all__ = [
    "AnthropicGenerator",
    "OllamaGenerator",
    "OpenAIGenerator",
    "TextGenerator",
    "create_generator",
]
