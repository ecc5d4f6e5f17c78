"""Public interface for the ``finance_tracker`` package.

This module exposes the pipelines, catalog and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
Importing the package creates no clients and reads no environment.
"""

from .catalog import DEFAULT_CATEGORIES, CategoryCatalog, load_catalog_from_db
from .errors import ConfigError, FinanceTrackerError, GenerationError, RejectedTransactionError
from .models import CategoryDefinition, ParsedTransaction, ParseSource, TransactionType
from .parsing import ParseStep, TransactionParsingPipeline, decide
from .providers import TextGenerator, create_generator
from .query import HELP_MESSAGE, QueryAnsweringPipeline
from .settings import AIProvider, Settings

__all__ = [
    # Pipelines
    "TransactionParsingPipeline",
    "QueryAnsweringPipeline",
    "ParseStep",
    "decide",
    "HELP_MESSAGE",
    # Catalog
    "CategoryCatalog",
    "DEFAULT_CATEGORIES",
    "load_catalog_from_db",
    # Models / types
    "CategoryDefinition",
    "ParsedTransaction",
    "ParseSource",
    "TransactionType",
    # Providers / configuration
    "TextGenerator",
    "create_generator",
    "AIProvider",
    "Settings",
    # Errors
    "FinanceTrackerError",
    "ConfigError",
    "GenerationError",
    "RejectedTransactionError",
]
