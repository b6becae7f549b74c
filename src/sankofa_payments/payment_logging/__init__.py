"""Logging module with structured formatters, PII/card masking, and context management."""

from .context import ContextFilter, LogContext, log_context, log_payment_context
from .filters import CardDataFilter, DefaultCorrelationFilter, PIIFilter
from .formatters import DevFormatter, JSONFormatter
from .setup import get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "log_context",
    "log_payment_context",
    "JSONFormatter",
    "DevFormatter",
    "PIIFilter",
    "CardDataFilter",
    "DefaultCorrelationFilter",
    "LogContext",
    "ContextFilter",
]
