"""Domain helpers for user field validation and response shaping."""
from __future__ import annotations

import re
from typing import Any, Mapping

PHONE_PATTERN = re.compile(r"[0-9]{7,15}")
MAX_NAME_LENGTH = 100
MAX_PASSWORD_LENGTH = 128
PRIVATE_FIELDS = ("hashedPassword",)


def is_valid_phone(value: Any) -> bool:
    """Return True when value is a string of 7 to 15 ASCII digits."""
    if not isinstance(value, str):
        return False
    return bool(PHONE_PATTERN.fullmatch(value))


def is_valid_name(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return 0 < len(value) <= MAX_NAME_LENGTH


def is_valid_password(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return 0 < len(value) <= MAX_PASSWORD_LENGTH


def trim_payload(payload: Mapping[str, Any] | None) -> dict:
    """Strip surrounding whitespace from every string value."""
    if not payload:
        return {}
    return {key: value.strip() if isinstance(value, str) else value for key, value in payload.items()}


def mask_phone(value: str) -> str:
    """Keep only the last four digits, for log lines."""
    return "*" * max(len(value) - 4, 0) + value[-4:]


def public_view(record: Mapping[str, Any]) -> dict:
    """Copy of a stored user without fields that must never leave the store."""
    return {key: value for key, value in record.items() if key not in PRIVATE_FIELDS}
