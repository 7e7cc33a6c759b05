"""Logging filters that scrub guest contact details."""

from __future__ import annotations

import logging
import re

from seating.security.redact import mask_email, mask_phone

_EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
# International numbers, (555) 123-4567 and 555-123-4567 style; dates and ids don't fit.
_PHONE_PATTERN = re.compile(
    r"\+\d[\d\s().-]{6,}\d|\(\d{3}\)\s?\d{3}[-.\s]\d{4}\b|\b\d{3}[-.]\d{3}[-.]\d{4}\b"
)


def scrub(text: str) -> str:
    """Mask every e-mail address and phone-like number in ``text``."""
    text = _EMAIL_PATTERN.sub(lambda match: mask_email(match.group(0)) or "", text)
    return _PHONE_PATTERN.sub(lambda match: mask_phone(match.group(0)) or "", text)


class SensitiveFilter(logging.Filter):
    """Replace guest e-mail addresses and phone numbers in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Arguments stay positional; uvicorn's access formatter indexes into them.
        if isinstance(record.args, tuple):
            record.args = tuple(
                scrub(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        if isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        return True


def install_sensitive_filter(
    logger_names: tuple[str, ...] = ("uvicorn", "uvicorn.access", "uvicorn.error", ""),
) -> None:
    """Attach the filter to the named loggers and to their handlers.

    Handler filters also see records propagated from child loggers.
    """
    for name in logger_names:
        target = logging.getLogger(name)
        for filterer in (target, *target.handlers):
            if not any(isinstance(flt, SensitiveFilter) for flt in filterer.filters):
                filterer.addFilter(SensitiveFilter())


__all__ = ["SensitiveFilter", "install_sensitive_filter", "scrub"]
