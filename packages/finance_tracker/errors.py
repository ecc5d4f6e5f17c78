"""Exception types raised by ``finance_tracker``.

The parsing and query pipelines recover from model-capability failures
locally and never raise these to their callers; they surface from the
configuration, provider and persistence layers.
"""

from __future__ import annotations


class FinanceTrackerError(Exception):
    """Base class for all package errors."""


class ConfigError(FinanceTrackerError):
    """Invalid or inconsistent configuration (environment or CLI)."""


class GenerationError(FinanceTrackerError):
    """A model provider call failed or returned an unusable payload."""


class RejectedTransactionError(FinanceTrackerError):
    """A parse result is not fit for storage (no amount, unknown category)."""
