"""
Phone Utilities
===============
Canonical identifier form shared by every map in the store.

Callers normalize once at the edge with ``normalize_identifier``; the store
only accepts identifiers that are already canonical (digits only), so
"+91 98765-43210" and "919876543210" can never become two keys.
"""

import re

from ..exceptions import InvalidIdentifier

MIN_DIGITS = 10
MAX_DIGITS = 15

_NON_DIGIT = re.compile(r'\D')


def normalize_identifier(raw: str, default_country: str = "91") -> str:
    """
    Normalize a phone number to digit-only E.164 (without the plus).

    Args:
        raw: Raw phone number in any common notation
        default_country: Country code prepended to 10-digit national numbers

    Returns:
        Canonical identifier
    """
    digits = _NON_DIGIT.sub('', raw)

    # National number without country code
    if len(digits) == 10:
        return f"{default_country}{digits}"

    return digits


def is_valid_identifier(raw: str) -> bool:
    """True if ``raw`` carries between 10 and 15 digits."""
    digits = _NON_DIGIT.sub('', raw)
    return MIN_DIGITS <= len(digits) <= MAX_DIGITS


def is_canonical(identifier: str) -> bool:
    return bool(identifier) and identifier.isascii() and identifier.isdigit()


def ensure_canonical(identifier: str) -> str:
    """
    Enforce the normalization contract at the store boundary.

    Raises:
        InvalidIdentifier: If ``identifier`` is empty or has non-digits
    """
    if not isinstance(identifier, str) or not is_canonical(identifier):
        raise InvalidIdentifier(identifier)
    return identifier


def mask_identifier(identifier: str) -> str:
    """
    Mask an identifier for logs and diagnostics.

    Returns:
        Masked identifier (e.g., "91******3210")
    """
    if len(identifier) <= 6:
        return "*" * len(identifier)
    return identifier[:2] + "*" * (len(identifier) - 6) + identifier[-4:]
