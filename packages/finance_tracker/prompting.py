"""Prompt construction and output schemas for model-backed calls.

This module builds:
- The prompt for structured transaction extraction (escalation path).
- The strict JSON Schema describing exactly the parsed-transaction fields.
- The prompt for narrative answers to free-form financial questions.

Prompts are plain strings; providers decide how to send them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

TRANSACTION_FIELDS: tuple[str, ...] = (
    "amount",
    "type",
    "category",
    "merchant",
    "description",
    "date",
    "confidence",
)


@dataclass(frozen=True, slots=True)
class StructuredSchema:
    """Named JSON Schema used to constrain a structured generation call."""

    name: str
    description: str
    schema: Mapping[str, Any] = field(default_factory=dict)


def build_transaction_schema() -> StructuredSchema:
    """Return the strict schema for one parsed transaction.

    Schema shape:
    {
      "type": "object",
      "properties": {
        "amount": {"type": "number"},
        "type": {"type": "string", "enum": ["income", "expense"]},
        "category": {"type": "string"},
        "merchant": {"type": ["string", "null"]},
        "description": {"type": "string"},
        "date": {"type": "string"},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1}
      },
      "required": [...all fields...],
      "additionalProperties": false
    }
    """

    return StructuredSchema(
        name="parsed_transaction",
        description="A single personal-finance transaction extracted from free text.",
        schema={
            "type": "object",
            "properties": {
                "amount": {
                    "type": "number",
                    "description": "The transaction amount as a positive number",
                },
                "type": {
                    "type": "string",
                    "enum": ["income", "expense"],
                    "description": "Whether this is income or expense",
                },
                "category": {
                    "type": "string",
                    "description": "The category that best matches this transaction",
                },
                "merchant": {
                    "type": ["string", "null"],
                    "description": "The merchant or store name if mentioned",
                },
                "description": {
                    "type": "string",
                    "description": "A brief description of the transaction",
                },
                "date": {
                    "type": "string",
                    "description": "The date in YYYY-MM-DD format",
                },
                "confidence": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 1,
                    "description": "Confidence score from 0 to 1",
                },
            },
            "required": list(TRANSACTION_FIELDS),
            "additionalProperties": False,
        },
    )


def build_parse_prompt(text: str, *, category_names: Sequence[str], today: date) -> str:
    """Prompt for structured extraction of ``text``.

    Carries the candidate text, today's date and every available category
    display name so the model can resolve relative dates and pick a known
    category.
    """

    categories = ", ".join(category_names)
    return (
        f'Parse this financial transaction: "{text}"\n'
        f"Available categories: {categories}\n"
        f"Today's date: {today.isoformat()}\n"
        "Return structured data. Use one of the available categories exactly as written, "
        "a positive amount, and a date in YYYY-MM-DD format."
    )


def build_answer_prompt(question: str, *, context_text: str, currency: str) -> str:
    """Prompt for a short narrative answer grounded in ``context_text``."""

    return (
        "You are a helpful personal finance assistant. Answer concisely based on this data:\n"
        "\n"
        f"{context_text}\n"
        "\n"
        f"Question: {question}\n"
        "\n"
        f"Answer in 1-3 sentences. Use {currency} for currency."
    )


__all__ = [
    "TRANSACTION_FIELDS",
    "StructuredSchema",
    "build_answer_prompt",
    "build_parse_prompt",
    "build_transaction_schema",
]
