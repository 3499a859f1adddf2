"""
Code Generator
==============
Fixed-width numeric one-time passcodes from the OS CSPRNG.
"""

import secrets

from ..exceptions import EntropyUnavailable


def generate_code(length: int = 6) -> str:
    """
    Generate a uniformly random numeric code.

    The first digit is never zero, so a 6-digit code falls in
    100000..999999.

    Args:
        length: Number of digits

    Returns:
        Code string of exactly ``length`` digits

    Raises:
        EntropyUnavailable: If the system random source fails
    """
    if length < 1:
        raise ValueError("length must be at least 1")

    lower = 10 ** (length - 1)
    try:
        value = lower + secrets.randbelow(9 * lower)
    except (OSError, NotImplementedError) as e:
        raise EntropyUnavailable("System random source unavailable") from e
    return str(value)


def code_range(length: int = 6) -> range:
    """All codes ``generate_code`` can return for ``length``, as integers."""
    lower = 10 ** (length - 1)
    return range(lower, 10 * lower)
