"""
OTP Hashing Utilities
=====================
One-way code digests, constant-time comparison and device fingerprints.
"""

import hashlib
import hmac
import secrets
from typing import Optional

FINGERPRINT_LENGTH = 16


class CredentialHasher:
    """
    Keyed SHA-256 digests for stored codes.

    The key (pepper) is random per process unless supplied, so a digest
    is deterministic for the life of the store but useless outside it.
    """

    def __init__(self, pepper: Optional[bytes] = None):
        self._pepper = pepper if pepper is not None else secrets.token_bytes(32)

    def hash(self, code: str) -> bytes:
        """
        Hash a code for storage.

        Args:
            code: Plain code

        Returns:
            32-byte digest
        """
        return hmac.new(self._pepper, code.encode(), hashlib.sha256).digest()

    @staticmethod
    def compare(candidate_digest: bytes, stored_digest: bytes) -> bool:
        """
        Compare two digests without short-circuiting on the first mismatch.

        Uses constant-time comparison to prevent timing attacks.
        """
        return hmac.compare_digest(candidate_digest, stored_digest)

    def verify(self, code: str, stored_digest: bytes) -> bool:
        """Hash ``code`` and compare it against ``stored_digest``."""
        return self.compare(self.hash(code), stored_digest)


def fingerprint_device(user_agent: str, ip: str) -> str:
    """
    Derive a short, stable device identifier.

    Only a soft signal: mobile clients legitimately change IP (and sometimes
    user agent) between issuance and verification.

    Args:
        user_agent: Client User-Agent header
        ip: Client IP address

    Returns:
        Truncated SHA-256 hex digest
    """
    raw = f"{user_agent}:{ip}".encode()
    return hashlib.sha256(raw).hexdigest()[:FINGERPRINT_LENGTH]
