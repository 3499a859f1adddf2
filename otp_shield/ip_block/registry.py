"""
IP Block Registry
=================
In-memory registry of temporarily blocked IP addresses.
"""

import threading
from typing import Dict, Optional
import structlog

from ..clock import Clock, system_clock
from ..metrics import OTP_IP_BLOCKS
from .models import BlockReason, BlockStatus, IPBlock

logger = structlog.get_logger(__name__)

_NOT_BLOCKED = BlockStatus(blocked=False)


class IPBlockRegistry:
    """
    Temporary IP blocks with lazy expiry.

    A later ``block()`` call replaces the reason of an active entry but
    never moves its expiry earlier.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or system_clock
        self._blocks: Dict[str, IPBlock] = {}
        self._lock = threading.Lock()

    def block(self, ip: str, reason: BlockReason, duration_ms: int) -> IPBlock:
        """
        Block ``ip`` for ``duration_ms`` from now, or longer if an active
        block already runs past that.

        Args:
            ip: Client IP address
            reason: Why the IP is being blocked
            duration_ms: Block duration in milliseconds

        Returns:
            The stored IPBlock
        """
        with self._lock:
            now = self._clock()
            blocked_until_ms = now + duration_ms
            existing = self._blocks.get(ip)
            if existing is not None and existing.is_active(now):
                blocked_until_ms = max(existing.blocked_until_ms, blocked_until_ms)
            entry = IPBlock(ip=ip, blocked_until_ms=blocked_until_ms, reason=reason)
            self._blocks[ip] = entry

        OTP_IP_BLOCKS.labels(reason=reason.value).inc()
        logger.warning(
            "ip_blocked",
            ip=ip,
            reason=reason.value,
            duration_ms=duration_ms,
            blocked_until_ms=blocked_until_ms,
        )
        return entry

    def is_blocked(self, ip: str) -> BlockStatus:
        """Check ``ip``, deleting its entry first if the block has lapsed."""
        now = self._clock()
        with self._lock:
            entry = self._blocks.get(ip)
            if entry is None:
                return _NOT_BLOCKED
            if not entry.is_active(now):
                del self._blocks[ip]
                return _NOT_BLOCKED
            return BlockStatus(
                blocked=True,
                reason=entry.reason,
                remaining_ms=entry.blocked_until_ms - now,
            )

    def unblock(self, ip: str) -> bool:
        """Remove a block early. Returns True if one existed."""
        with self._lock:
            removed = self._blocks.pop(ip, None) is not None
        if removed:
            logger.info("ip_unblocked", ip=ip)
        return removed

    def sweep(self) -> int:
        """Remove every lapsed block. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [
                ip for ip, entry in self._blocks.items()
                if not entry.is_active(now)
            ]
            for ip in expired:
                del self._blocks[ip]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._blocks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._blocks)
