"""Utility functions and helpers."""

from .comment_aggregator import CommentAggregator
from .diff_parser import DiffParseError, parse_diff
from .filters import filter_excluded_files, is_excluded, parse_exclude_patterns
from .line_validator import validate_finding, validate_findings
from .logging import setup_logging, setup_observability
from .rate_limiter import ConcurrencyLimiter, with_exponential_backoff

__all__ = [
    "CommentAggregator",
    "ConcurrencyLimiter",
    "DiffParseError",
    "filter_excluded_files",
    "is_excluded",
    "parse_diff",
    "parse_exclude_patterns",
    "setup_logging",
    "setup_observability",
    "validate_finding",
    "validate_findings",
    "with_exponential_backoff",
]
