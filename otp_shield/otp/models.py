"""
OTP Models
==========
Data models and enums for OTP issuance and verification.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class VerifyStatus(str, Enum):
    """Outcome of a verification attempt."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"
    MISMATCH = "mismatch"


@dataclass
class OTPRecord:
    """The single live code for one identifier. Never holds the plaintext."""
    identifier: str
    code_hash: bytes
    issued_at_ms: int
    source_ip: str
    device_id: str
    user_agent: str
    attempts: int = 0

    def expires_at_ms(self, ttl_ms: int) -> int:
        return self.issued_at_ms + ttl_ms

    def is_expired(self, now_ms: int, ttl_ms: int) -> bool:
        return now_ms - self.issued_at_ms >= ttl_ms


@dataclass(frozen=True)
class VerifyResult:
    """Result of ``OTPStore.verify``."""
    status: VerifyStatus
    attempts_remaining: Optional[int] = None
    blocked_ms: Optional[int] = None
    device_mismatch: bool = False

    @property
    def success(self) -> bool:
        return self.status == VerifyStatus.SUCCESS


@dataclass(frozen=True)
class RecordInfo:
    """Read-only view of a record for diagnostics; no code, no digest."""
    issued_at_ms: int
    expires_at_ms: int
    attempts: int
    attempts_remaining: int
    source_ip: str
    device_id: str
    expired: bool
