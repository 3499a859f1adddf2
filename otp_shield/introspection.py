"""
Security Introspection
======================
Read-only diagnostics over the store. Development use only.

Never exposes plaintext codes or digests; identifiers are masked.
"""

from typing import Any, Dict
import structlog

from .ip_block import IPBlockRegistry
from .messaging import ensure_canonical, mask_identifier
from .otp import OTPStore
from .rate_limit import IssuanceRateLimiter

logger = structlog.get_logger(__name__)


class SecurityInspector:
    """Metadata views of the three maps, gated by ``enabled``."""

    def __init__(
        self,
        store: OTPStore,
        rate_limiter: IssuanceRateLimiter,
        ip_blocks: IPBlockRegistry,
        enabled: bool = False,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.ip_blocks = ip_blocks
        self.enabled = enabled

    def _require_enabled(self) -> None:
        if not self.enabled:
            raise PermissionError("Security introspection is disabled")

    def security_status(self, identifier: str, ip: str) -> Dict[str, Any]:
        """
        Describe the state held for ``identifier`` and ``ip``.

        Args:
            identifier: Canonical identifier
            ip: IP address to report blocking for

        Returns:
            Dict with masked identifier, OTP metadata, rate window and IP block
        """
        self._require_enabled()
        ensure_canonical(identifier)

        otp_info = self.store.get_record_info(identifier)
        window = self.rate_limiter.get_window(identifier)
        block = self.ip_blocks.is_blocked(ip)
        window_ms = self.rate_limiter.config.rate_window_ms

        logger.debug("security_status_read", identifier=mask_identifier(identifier), ip=ip)

        return {
            "identifier": mask_identifier(identifier),
            "otp": None if otp_info is None else {
                "issued_at_ms": otp_info.issued_at_ms,
                "expires_at_ms": otp_info.expires_at_ms,
                "attempts": otp_info.attempts,
                "attempts_remaining": otp_info.attempts_remaining,
                "source_ip": otp_info.source_ip,
                "device_id": otp_info.device_id,
                "expired": otp_info.expired,
            },
            "rate_limit": None if window is None else {
                "window_start_ms": window.window_start_ms,
                "window_end_ms": window.window_end_ms(window_ms),
                "request_count": window.request_count,
                "remaining": max(0, self.rate_limiter.limit - window.request_count),
                "last_ip": window.last_ip,
            },
            "ip_block": {
                "blocked": block.blocked,
                "reason": block.reason.value if block.reason else None,
                "remaining_ms": block.remaining_ms,
            },
        }

    def stats(self) -> Dict[str, int]:
        """Live entry counts of the three maps."""
        self._require_enabled()
        return {
            "otp_records": len(self.store),
            "rate_windows": len(self.rate_limiter),
            "ip_blocks": len(self.ip_blocks),
        }
