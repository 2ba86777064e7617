"""Analysis utilities for funnel graphs."""

from funnel_backbone.analysis.validation import (
    MISSING_SALES_PAGE,
    MISSING_THANK_YOU_PAGE,
    ValidationSummary,
    summarize,
    validate,
)

__all__ = [
    "MISSING_SALES_PAGE",
    "MISSING_THANK_YOU_PAGE",
    "ValidationSummary",
    "summarize",
    "validate",
]
