"""Public interface for the ``statement_import`` package.

Re-exports the API functions and public models/types as the stable import
surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    AutoRule,
    CurrencyConverter,
    DuplicateReconciler,
    FrankfurterRateClient,
    HttpDuplicateDetector,
    ImportSink,
    ParsedAmount,
    ReviewSession,
    SpreadsheetSink,
    TransformReport,
    classify,
    derive_selection,
    normalize_date,
    parse_amount,
    prepare_review,
    remap,
    suggest_mappings,
    transform_rows,
)
from .errors import (
    ImportFailedError,
    MissingMappingError,
    StatementImportError,
)
from .models import (
    ColumnMapping,
    FileStructure,
    Jar,
    RawRow,
    RevenueTransaction,
    SpendingTransaction,
    Target,
    Transaction,
    TransactionKind,
)

__all__ = [
    # API
    "normalize_date",
    "parse_amount",
    "classify",
    "suggest_mappings",
    "remap",
    "transform_rows",
    "derive_selection",
    "prepare_review",
    "CurrencyConverter",
    "FrankfurterRateClient",
    "DuplicateReconciler",
    "HttpDuplicateDetector",
    "ImportSink",
    "SpreadsheetSink",
    "ReviewSession",
    "TransformReport",
    "AutoRule",
    "ParsedAmount",
    # Models / types
    "ColumnMapping",
    "FileStructure",
    "Jar",
    "RawRow",
    "SpendingTransaction",
    "RevenueTransaction",
    "Target",
    "Transaction",
    "TransactionKind",
    # Errors
    "StatementImportError",
    "MissingMappingError",
    "ImportFailedError",
]
