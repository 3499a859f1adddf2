"""
IP Block Models
===============
Data models and enums for temporary IP blocks.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class BlockReason(str, Enum):
    """Why an IP was blocked."""
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"


@dataclass
class IPBlock:
    """A temporary block on one IP address."""
    ip: str
    blocked_until_ms: int
    reason: BlockReason

    def is_active(self, now_ms: int) -> bool:
        return now_ms < self.blocked_until_ms


@dataclass(frozen=True)
class BlockStatus:
    """Answer to "is this IP blocked right now?"."""
    blocked: bool
    reason: Optional[BlockReason] = None
    remaining_ms: Optional[int] = None
