"""Public API interfaces and orchestration for the ``statement_import`` package.

This module serves as a stable import surface. Implementations live in the
stage modules (``dates``, ``amounts``, ``categorize``, ``mappings``,
``transform``, ``currency``, ``duplicates``, ``review``) and the
``pipeline`` orchestrator; they are re-exported here.
"""

from __future__ import annotations

from .amounts import ParsedAmount, parse_amount, resolve_currency
from .categorize import AutoRule, classify, load_auto_rules, match_auto_rule
from .currency import CurrencyConverter, FrankfurterRateClient, RateProvider
from .dates import normalize_date
from .duplicates import (
    DuplicateDetector,
    DuplicateReconciler,
    HttpDuplicateDetector,
    derive_selection,
)
from .mappings import missing_required_targets, remap, suggest_mappings
from .pipeline import prepare_review, prepare_review_with_report
from .review import ReviewCounts, ReviewSession
from .sink import ImportSink, SpreadsheetSink
from .transform import TransformReport, transform_rows, transform_rows_with_report

__all__ = [
    # Stage functions
    "normalize_date",
    "parse_amount",
    "resolve_currency",
    "classify",
    "load_auto_rules",
    "match_auto_rule",
    "suggest_mappings",
    "remap",
    "missing_required_targets",
    "transform_rows",
    "transform_rows_with_report",
    "derive_selection",
    "prepare_review",
    "prepare_review_with_report",
    # Collaborators
    "CurrencyConverter",
    "FrankfurterRateClient",
    "RateProvider",
    "DuplicateDetector",
    "DuplicateReconciler",
    "HttpDuplicateDetector",
    "ImportSink",
    "SpreadsheetSink",
    # Results
    "AutoRule",
    "ParsedAmount",
    "ReviewCounts",
    "ReviewSession",
    "TransformReport",
]
