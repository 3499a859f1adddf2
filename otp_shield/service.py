"""
OTP Verification Service
========================
Request-code and submit-code use cases over the security store.

    request_code: IP block check -> rate limit -> issue -> deliver
    submit_code:  IP block check -> verify

Denials are returned with the remaining block time and are never retried
internally.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import structlog

from .clock import Clock, system_clock
from .config import OTPShieldConfig
from .delivery import DeliveryChannel
from .ip_block import IPBlockRegistry
from .messaging import mask_identifier
from .metrics import OTP_ADMISSION_DENIED, OTP_DELIVERY_FAILURES
from .otp import OTPStore, VerifyStatus
from .rate_limit import IssuanceRateLimiter
from .sweeper import EvictionScheduler

logger = structlog.get_logger(__name__)


class RequestCodeStatus(str, Enum):
    SENT = "sent"
    IP_BLOCKED = "ip_blocked"
    RATE_LIMITED = "rate_limited"
    DELIVERY_FAILED = "delivery_failed"


class SubmitCodeStatus(str, Enum):
    VERIFIED = "verified"
    IP_BLOCKED = "ip_blocked"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"
    MISMATCH = "mismatch"


_SUBMIT_STATUS = {
    VerifyStatus.SUCCESS: SubmitCodeStatus.VERIFIED,
    VerifyStatus.NOT_FOUND: SubmitCodeStatus.NOT_FOUND,
    VerifyStatus.EXPIRED: SubmitCodeStatus.EXPIRED,
    VerifyStatus.ATTEMPTS_EXCEEDED: SubmitCodeStatus.ATTEMPTS_EXCEEDED,
    VerifyStatus.MISMATCH: SubmitCodeStatus.MISMATCH,
}


@dataclass(frozen=True)
class RequestCodeResult:
    status: RequestCodeStatus
    message_id: Optional[str] = None
    retry_after_ms: Optional[int] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == RequestCodeStatus.SENT


@dataclass(frozen=True)
class SubmitCodeResult:
    status: SubmitCodeStatus
    retry_after_ms: Optional[int] = None
    attempts_remaining: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == SubmitCodeStatus.VERIFIED


class OTPVerificationService:
    """Facade composing the IP registry, rate limiter, store and channel."""

    def __init__(
        self,
        store: OTPStore,
        rate_limiter: IssuanceRateLimiter,
        ip_blocks: IPBlockRegistry,
        channel: DeliveryChannel,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.ip_blocks = ip_blocks
        self.channel = channel

    async def request_code(
        self,
        identifier: str,
        ip: str,
        user_agent: str,
    ) -> RequestCodeResult:
        """
        Issue a code for ``identifier`` and hand it to the delivery channel.

        A failed delivery leaves the record in place; it expires by TTL and
        the user can request a new code.

        Args:
            identifier: Canonical identifier
            ip: Requesting IP address
            user_agent: Requesting client's User-Agent

        Returns:
            RequestCodeResult
        """
        block = self.ip_blocks.is_blocked(ip)
        if block.blocked:
            OTP_ADMISSION_DENIED.labels(reason="ip_blocked").inc()
            logger.info("otp_request_ip_blocked", ip=ip, remaining_ms=block.remaining_ms)
            return RequestCodeResult(
                status=RequestCodeStatus.IP_BLOCKED,
                retry_after_ms=block.remaining_ms,
            )

        decision = self.rate_limiter.check_and_record(identifier, ip)
        if not decision.allowed:
            OTP_ADMISSION_DENIED.labels(reason="rate_limited").inc()
            return RequestCodeResult(
                status=RequestCodeStatus.RATE_LIMITED,
                retry_after_ms=decision.retry_after_ms,
            )

        code = self.store.issue(identifier, ip, user_agent)
        result = await self.channel.send(identifier, code)

        if not result.success:
            OTP_DELIVERY_FAILURES.labels(channel=self.channel.name).inc()
            logger.error(
                "otp_delivery_failed",
                identifier=mask_identifier(identifier),
                channel=self.channel.name,
                error_code=result.error_code,
            )
            return RequestCodeResult(
                status=RequestCodeStatus.DELIVERY_FAILED,
                error=result.error_message,
            )

        return RequestCodeResult(
            status=RequestCodeStatus.SENT,
            message_id=result.message_id,
        )

    def submit_code(
        self,
        identifier: str,
        code: str,
        ip: str,
        user_agent: str,
    ) -> SubmitCodeResult:
        """Verify a code entered by the user."""
        block = self.ip_blocks.is_blocked(ip)
        if block.blocked:
            OTP_ADMISSION_DENIED.labels(reason="ip_blocked").inc()
            return SubmitCodeResult(
                status=SubmitCodeStatus.IP_BLOCKED,
                retry_after_ms=block.remaining_ms,
            )

        result = self.store.verify(identifier, code, ip, user_agent)
        return SubmitCodeResult(
            status=_SUBMIT_STATUS[result.status],
            retry_after_ms=result.blocked_ms,
            attempts_remaining=result.attempts_remaining,
        )


@dataclass
class OTPShield:
    """Everything one process needs, built once by ``build_service``."""
    config: OTPShieldConfig
    ip_blocks: IPBlockRegistry
    rate_limiter: IssuanceRateLimiter
    store: OTPStore
    service: OTPVerificationService
    scheduler: EvictionScheduler


def build_service(
    channel: DeliveryChannel,
    config: Optional[OTPShieldConfig] = None,
    clock: Optional[Clock] = None,
) -> OTPShield:
    """
    Wire the store components around a shared config and clock.

    The scheduler is created but not started.
    """
    config = config or OTPShieldConfig()
    clock = clock or system_clock

    ip_blocks = IPBlockRegistry(clock=clock)
    rate_limiter = IssuanceRateLimiter(ip_blocks, config=config, clock=clock)
    store = OTPStore(ip_blocks, config=config, clock=clock)

    return OTPShield(
        config=config,
        ip_blocks=ip_blocks,
        rate_limiter=rate_limiter,
        store=store,
        service=OTPVerificationService(store, rate_limiter, ip_blocks, channel),
        scheduler=EvictionScheduler(
            store,
            rate_limiter,
            ip_blocks,
            interval_ms=config.sweep_interval_ms,
        ),
    )
