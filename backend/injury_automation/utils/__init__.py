"""Utility modules"""
from .logger import get_logger, setup_logging, correlation_scope, get_correlation_id
from .idgen import generate_id, generate_correlation_id
from .time import utc_now, format_iso, parse_iso, hours_since, format_locale

__all__ = [
    "get_logger",
    "setup_logging",
    "correlation_scope",
    "get_correlation_id",
    "generate_id",
    "generate_correlation_id",
    "utc_now",
    "format_iso",
    "parse_iso",
    "hours_since",
    "format_locale",
]
