"""
utils/validation_utils.py

Purpose: Input validation

- Phone presence and normalization
- Submitted token normalization
- Identifier sanitization for lookups
- Masking for logs
"""

import re
from typing import Any, Dict, Iterable, Optional

from utils.constants import SMS_TOKEN_ALPHABET


def has_phone(phone: Optional[str]) -> bool:
    """
    True if a usable phone number is present.
    """
    return bool(phone and phone.strip())


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalizes a phone number to a compact E.164-like form.

    - Removes spaces, dashes, dots and parentheses
    - Converts a leading 00 to +

    Args:
        phone: Raw phone number

    Returns:
        Normalized phone or None if nothing usable remains
    """
    if not phone:
        return None

    cleaned = re.sub(r"[\s\-\.\(\)]+", "", phone.strip())
    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]

    if not re.match(r"^\+?[0-9]{6,15}$", cleaned):
        return None

    return cleaned


def normalize_token(token: Optional[str]) -> Optional[str]:
    """
    Normalizes a submitted confirmation token.

    Tokens are issued uppercased, so user input is stripped and uppercased
    before lookup. Returns None for blank or malformed input.
    """
    if not token:
        return None

    token = token.strip().upper()
    if not token:
        return None

    allowed = set(SMS_TOKEN_ALPHABET.upper())
    if any(char not in allowed for char in token):
        return None

    return token


def sanitize_identifiers(keys: Iterable[str], attributes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Picks the lookup keys out of `attributes`, stripping string values.

    Returns None if any key is missing or blank, so callers can treat it
    as "not found" without querying the store.
    """
    query = {}

    for key in keys:
        value = attributes.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            return None
        query[key] = value

    return query


def mask_phone(phone: Optional[str]) -> str:
    """
    Masks a phone number for logging (+91******3210).
    """
    if not phone:
        return "none"
    if len(phone) <= 4:
        return "*" * len(phone)

    prefix = phone[:3] if phone.startswith("+") else phone[:2]
    return prefix + "*" * (len(phone) - len(prefix) - 4) + phone[-4:]
