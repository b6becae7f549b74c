"""Log filters for PII and card data masking, and correlation ID injection."""

import logging
import re


class PIIFilter(logging.Filter):
    """Masks PII (emails, phone numbers) in log messages."""

    EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")
    PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+?233|0)\d{9}(?!\d)|\d{3}[-.\s]?\d{3}[-.\s]?\d{4}")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            msg = record.msg
            if "@" in msg:
                msg = self.EMAIL_PATTERN.sub("[EMAIL]", msg)
            if any(c.isdigit() for c in msg):
                msg = self.PHONE_PATTERN.sub("[PHONE]", msg)
            record.msg = msg
        return True


class CardDataFilter(logging.Filter):
    """Masks primary account numbers and CVVs that slip into log messages.

    Adapters mask card data before logging; this filter is the last line
    for anything that bypasses them (exception text, third-party loggers).
    Must run before PIIFilter, whose phone pattern would otherwise eat the
    middle of a card number.
    """

    PAN_PATTERN = re.compile(r"(?<!\d)(\d[ -]?){11,15}(\d{4})(?!\d)")
    CVV_PATTERN = re.compile(r"(?i)(cvv|cvc|cvv2)(['\"]?\s*[:=]\s*['\"]?)\d{3,4}")

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        if any(c.isdigit() for c in msg):
            masked = self.PAN_PATTERN.sub(lambda m: f"****{m.group(2)}", msg)
            masked = self.CVV_PATTERN.sub(r"\1\2***", masked)
            if masked != msg:
                record.msg = masked
                record.args = None
        return True


class DefaultCorrelationFilter(logging.Filter):
    """Adds default correlation_id if not present."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True
