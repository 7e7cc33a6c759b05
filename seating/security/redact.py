"""Helpers for masking guest contact details."""

from __future__ import annotations

import os

_BOOL_TRUE = {"1", "true", "yes", "on"}
_REDACT_ENABLED = os.getenv("LOG_REDACT_CONTACTS", "true").lower() in _BOOL_TRUE


def is_redaction_enabled() -> bool:
    return _REDACT_ENABLED


def mask_email(value: str | None) -> str | None:
    if not value or "@" not in value:
        return value
    local, _, domain = value.partition("@")
    if not local:
        return "***@" + domain
    return f"{local[0]}***@{domain}"


def mask_phone(value: str | None) -> str | None:
    if not value:
        return value
    digits = [ch for ch in value if ch.isdigit()]
    if len(digits) < 4:
        return "***"
    return f"***-***-{''.join(digits[-4:])}"


def describe_guest(name: str, email: str | None, phone: str | None) -> str:
    """One-line guest label suitable for log output."""
    if not _REDACT_ENABLED:
        return f"{name} <{email}> {phone}"
    return f"{name} <{mask_email(email)}> {mask_phone(phone)}"


__all__ = [
    "describe_guest",
    "is_redaction_enabled",
    "mask_email",
    "mask_phone",
]
