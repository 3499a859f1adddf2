"""
Rate Limit Models
=================
Data models for issuance rate limiting.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum

from ..ip_block.models import BlockReason


class RateLimitResult(str, Enum):
    """Rate limit decision result."""
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass
class RateLimitWindow:
    """Issuance requests counted for one identifier."""
    window_start_ms: int
    request_count: int
    last_ip: str

    def window_end_ms(self, window_ms: int) -> int:
        return self.window_start_ms + window_ms

    def is_stale(self, now_ms: int, window_ms: int) -> bool:
        return now_ms - self.window_start_ms >= window_ms


@dataclass(frozen=True)
class RateLimitDecision:
    """Rate limit check result with quota information."""
    allowed: bool
    remaining: int
    limit: int
    reset_at_ms: int
    reason: Optional[BlockReason] = None
    retry_after_ms: Optional[int] = None  # Duration of the IP block just registered

    @property
    def result(self) -> RateLimitResult:
        return RateLimitResult.ALLOWED if self.allowed else RateLimitResult.DENIED
