"""Two-tier transaction parsing: fast rules first, model extraction when unsure.

Flow
----
1. :class:`~finance_tracker.rules.RuleBasedParser` produces a result.
2. :func:`decide` compares its confidence with the threshold.
3. On ``ESCALATE`` the generator is asked once for a structured parse, which
   :class:`~finance_tracker.validation.ParseResultValidator` repairs against
   the catalog.
4. Any failure in step 3 returns the rule-based result unchanged.

``TransactionParsingPipeline.parse`` never raises because of the model
capability. A result with ``amount == 0`` means no amount was found; callers
must not store it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from enum import StrEnum

from .catalog import CategoryCatalog
from .logging_setup import get_logger, log_event
from .models import ParsedTransaction
from .prompting import build_parse_prompt, build_transaction_schema
from .providers import TextGenerator
from .rules import RuleBasedParser
from .settings import DEFAULT_CONFIDENCE_THRESHOLD
from .validation import ParseResultValidator

_logger = get_logger("finance_tracker.parsing")


class ParseStep(StrEnum):
    DONE = "done"
    ESCALATE = "escalate"


def decide(rule_result: ParsedTransaction, threshold: float) -> ParseStep:
    """Next step after the rule-based parse.

    Pure: ``DONE`` when ``rule_result.confidence >= threshold``, else
    ``ESCALATE``.
    """

    if rule_result.confidence >= threshold:
        return ParseStep.DONE
    return ParseStep.ESCALATE


class TransactionParsingPipeline:
    """Parse free text into a :class:`ParsedTransaction`.

    Parameters
    ----------
    catalog:
        Categories used by both the rules and the validator.
    generator:
        Model capability for escalation; ``None`` disables escalation.
    threshold:
        Rule confidence below which escalation is attempted (once).
    today:
        Clock for relative dates and date repair.
    """

    def __init__(
        self,
        catalog: CategoryCatalog,
        generator: TextGenerator | None = None,
        *,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.catalog = catalog
        self.generator = generator
        self.threshold = threshold
        self._today = today
        self._rules = RuleBasedParser(catalog, today=today)
        self._validator = ParseResultValidator(catalog, today=today)
        self._schema = build_transaction_schema()

    def parse(self, text: str) -> ParsedTransaction:
        log_event(_logger, "parse:start", level=logging.DEBUG, text=text)
        rule_result = self._rules.parse(text)

        if decide(rule_result, self.threshold) is ParseStep.DONE or self.generator is None:
            log_event(
                _logger,
                "parse:rule_done",
                confidence=rule_result.confidence,
                category=rule_result.category,
            )
            return rule_result

        log_event(
            _logger,
            "parse:escalate",
            confidence=rule_result.confidence,
            threshold=self.threshold,
        )
        try:
            return self._escalate(text)
        except Exception as e:  # noqa: BLE001 - any escalation failure falls back to rules
            log_event(
                _logger,
                "parse:escalation_failed",
                level=logging.WARNING,
                error=e.__class__.__name__,
            )
            return rule_result

    def _escalate(self, text: str) -> ParsedTransaction:
        assert self.generator is not None
        prompt = build_parse_prompt(
            text, category_names=self.catalog.names(), today=self._today()
        )
        payload = self.generator.generate_structured(prompt, self._schema)
        validated = self._validator.validate(payload)
        log_event(
            _logger,
            "parse:model_done",
            confidence=validated.confidence,
            category=validated.category,
        )
        return validated


__all__ = ["ParseStep", "TransactionParsingPipeline", "decide"]
