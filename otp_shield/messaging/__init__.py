"""
Identifier Handling
===================
Normalization contract and masking for phone-number identifiers.
"""

from .phone_utils import (
    normalize_identifier,
    is_valid_identifier,
    is_canonical,
    ensure_canonical,
    mask_identifier,
)

__all__ = [
    "normalize_identifier",
    "is_valid_identifier",
    "is_canonical",
    "ensure_canonical",
    "mask_identifier",
]
