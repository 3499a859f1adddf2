"""
In-Memory Issuance Rate Limiter
===============================
Per-identifier request windows that block the requesting IP on abuse.
"""

import threading
from typing import Dict, Optional
import structlog

from ..clock import Clock, system_clock
from ..config import OTPShieldConfig
from ..ip_block import BlockReason, IPBlockRegistry
from ..messaging import ensure_canonical, mask_identifier
from .models import RateLimitDecision, RateLimitWindow

logger = structlog.get_logger(__name__)


class IssuanceRateLimiter:
    """
    Counts OTP issuance requests per identifier.

    A window opens on the first request and lasts ``rate_window_ms``. Once
    ``max_requests_per_window`` requests have been admitted, further
    requests are denied and the *requesting IP* is blocked for
    ``ip_block_ms``; rotating the target identifier does not help an
    attacker.
    """

    def __init__(
        self,
        ip_blocks: IPBlockRegistry,
        config: Optional[OTPShieldConfig] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            ip_blocks: Registry that receives blocks on denial
            config: Window size, request cap and block duration
            clock: Millisecond clock
        """
        self.config = config or OTPShieldConfig()
        self._ip_blocks = ip_blocks
        self._clock = clock or system_clock
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self.config.max_requests_per_window

    def check_and_record(self, identifier: str, ip: str) -> RateLimitDecision:
        """
        Decide whether an issuance request is admitted, and count it.

        Args:
            identifier: Canonical identifier
            ip: Requesting IP address

        Returns:
            RateLimitDecision with decision and quota
        """
        ensure_canonical(identifier)
        window_ms = self.config.rate_window_ms

        with self._lock:
            now = self._clock()
            window = self._windows.get(identifier)

            if window is None or window.is_stale(now, window_ms):
                window = RateLimitWindow(window_start_ms=now, request_count=1, last_ip=ip)
                self._windows[identifier] = window
                return RateLimitDecision(
                    allowed=True,
                    remaining=self.limit - 1,
                    limit=self.limit,
                    reset_at_ms=window.window_end_ms(window_ms),
                )

            window.last_ip = ip

            if window.request_count >= self.limit:
                block = self._ip_blocks.block(
                    ip,
                    BlockReason.RATE_LIMIT_EXCEEDED,
                    self.config.ip_block_ms,
                )
                logger.warning(
                    "otp_rate_limit_exceeded",
                    identifier=mask_identifier(identifier),
                    ip=ip,
                    count=window.request_count,
                )
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    limit=self.limit,
                    reset_at_ms=window.window_end_ms(window_ms),
                    reason=block.reason,
                    retry_after_ms=block.blocked_until_ms - now,
                )

            window.request_count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self.limit - window.request_count,
                limit=self.limit,
                reset_at_ms=window.window_end_ms(window_ms),
            )

    def get_window(self, identifier: str) -> Optional[RateLimitWindow]:
        """Return a copy of the live window for ``identifier``, if any."""
        ensure_canonical(identifier)
        now = self._clock()
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or window.is_stale(now, self.config.rate_window_ms):
                return None
            return RateLimitWindow(
                window_start_ms=window.window_start_ms,
                request_count=window.request_count,
                last_ip=window.last_ip,
            )

    def sweep(self) -> int:
        """Remove windows that have elapsed. Returns the number removed."""
        now = self._clock()
        with self._lock:
            stale = [
                key for key, window in self._windows.items()
                if window.is_stale(now, self.config.rate_window_ms)
            ]
            for key in stale:
                del self._windows[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
