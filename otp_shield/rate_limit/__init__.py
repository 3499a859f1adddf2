"""
Rate Limiting Module for OTP Shield
===================================
Per-identifier issuance windows backed by in-memory state.
"""

from .models import RateLimitDecision, RateLimitResult, RateLimitWindow
from .in_memory import IssuanceRateLimiter

__all__ = [
    # Models
    "RateLimitDecision",
    "RateLimitResult",
    "RateLimitWindow",
    # Limiters
    "IssuanceRateLimiter",
]
