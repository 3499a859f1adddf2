"""
OTP Record Store
================
Hashed, expiring, attempt-limited codes keyed by identifier.
"""

import threading
from typing import Callable, Dict, Optional
import structlog

from ..clock import Clock, system_clock
from ..config import OTPShieldConfig
from ..ip_block import BlockReason, IPBlockRegistry
from ..messaging import ensure_canonical, mask_identifier
from ..metrics import OTP_DEVICE_MISMATCH, OTP_ISSUED, OTP_VERIFICATIONS
from .generator import generate_code
from .hashing import CredentialHasher, fingerprint_device
from .models import OTPRecord, RecordInfo, VerifyResult, VerifyStatus

logger = structlog.get_logger(__name__)


class OTPStore:
    """
    One active code per identifier.

    Issuing overwrites any previous record, so a new code always
    invalidates the old one. Every read-modify-write runs under the store
    lock: two concurrent verifications of the same identifier can never
    both observe ``attempts < max_attempts``.
    """

    def __init__(
        self,
        ip_blocks: IPBlockRegistry,
        config: Optional[OTPShieldConfig] = None,
        clock: Optional[Clock] = None,
        hasher: Optional[CredentialHasher] = None,
        code_generator: Callable[[int], str] = generate_code,
    ):
        self.config = config or OTPShieldConfig()
        self._ip_blocks = ip_blocks
        self._clock = clock or system_clock
        self._hasher = hasher or CredentialHasher()
        self._generate = code_generator
        self._records: Dict[str, OTPRecord] = {}
        self._lock = threading.Lock()

    def issue(self, identifier: str, ip: str, user_agent: str) -> str:
        """
        Create a fresh code for ``identifier``.

        Args:
            identifier: Canonical identifier
            ip: Requesting IP address
            user_agent: Requesting client's User-Agent

        Returns:
            The plaintext code, for out-of-band delivery. It is not kept.

        Raises:
            EntropyUnavailable: If no secure randomness is available
        """
        ensure_canonical(identifier)
        code = self._generate(self.config.code_length)
        code_hash = self._hasher.hash(code)
        device_id = fingerprint_device(user_agent, ip)

        with self._lock:
            now = self._clock()
            replaced = identifier in self._records
            self._records[identifier] = OTPRecord(
                identifier=identifier,
                code_hash=code_hash,
                issued_at_ms=now,
                source_ip=ip,
                device_id=device_id,
                user_agent=user_agent,
            )

        OTP_ISSUED.inc()
        logger.info(
            "otp_issued",
            identifier=mask_identifier(identifier),
            ip=ip,
            device_id=device_id,
            replaced=replaced,
            expires_in_ms=self.config.otp_ttl_ms,
        )
        return code

    def verify(
        self,
        identifier: str,
        candidate_code: str,
        ip: str,
        user_agent: str,
    ) -> VerifyResult:
        """
        Check ``candidate_code`` against the live record.

        The attempt counter is incremented before the comparison, so every
        call counts toward the ceiling whatever its result.

        Args:
            identifier: Canonical identifier
            candidate_code: Code entered by the user
            ip: Verifying IP address
            user_agent: Verifying client's User-Agent

        Returns:
            VerifyResult
        """
        ensure_canonical(identifier)
        masked = mask_identifier(identifier)
        candidate_hash = self._hasher.hash(candidate_code)
        device_id = fingerprint_device(user_agent, ip)

        with self._lock:
            now = self._clock()
            record = self._records.get(identifier)

            if record is None:
                result = VerifyResult(status=VerifyStatus.NOT_FOUND)

            elif record.is_expired(now, self.config.otp_ttl_ms):
                del self._records[identifier]
                logger.info("otp_expired", identifier=masked)
                result = VerifyResult(status=VerifyStatus.EXPIRED)

            elif record.attempts >= self.config.max_attempts:
                del self._records[identifier]
                block = self._ip_blocks.block(
                    ip,
                    BlockReason.ATTEMPTS_EXCEEDED,
                    self.config.attempt_block_ms,
                )
                logger.warning(
                    "otp_attempts_exhausted",
                    identifier=masked,
                    ip=ip,
                    attempts=record.attempts,
                )
                result = VerifyResult(
                    status=VerifyStatus.ATTEMPTS_EXCEEDED,
                    attempts_remaining=0,
                    blocked_ms=block.blocked_until_ms - now,
                )

            else:
                mismatch = device_id != record.device_id
                if mismatch:
                    OTP_DEVICE_MISMATCH.inc()
                    logger.warning(
                        "device_mismatch",
                        identifier=masked,
                        issued_ip=record.source_ip,
                        ip=ip,
                        issued_device_id=record.device_id,
                        device_id=device_id,
                    )

                record.attempts += 1
                remaining = self.config.max_attempts - record.attempts

                if self._hasher.compare(candidate_hash, record.code_hash):
                    del self._records[identifier]
                    logger.info("otp_verified", identifier=masked, attempts=record.attempts)
                    result = VerifyResult(
                        status=VerifyStatus.SUCCESS,
                        attempts_remaining=remaining,
                        device_mismatch=mismatch,
                    )
                else:
                    logger.warning(
                        "otp_invalid_attempt",
                        identifier=masked,
                        ip=ip,
                        remaining=remaining,
                    )
                    result = VerifyResult(
                        status=VerifyStatus.MISMATCH,
                        attempts_remaining=remaining,
                        device_mismatch=mismatch,
                    )

        OTP_VERIFICATIONS.labels(outcome=result.status.value).inc()
        return result

    def get_record_info(self, identifier: str) -> Optional[RecordInfo]:
        """Metadata for the record of ``identifier``, if one is stored."""
        ensure_canonical(identifier)
        ttl = self.config.otp_ttl_ms
        with self._lock:
            now = self._clock()
            record = self._records.get(identifier)
            if record is None:
                return None
            return RecordInfo(
                issued_at_ms=record.issued_at_ms,
                expires_at_ms=record.expires_at_ms(ttl),
                attempts=record.attempts,
                attempts_remaining=max(0, self.config.max_attempts - record.attempts),
                source_ip=record.source_ip,
                device_id=record.device_id,
                expired=record.is_expired(now, ttl),
            )

    def discard(self, identifier: str) -> bool:
        """Drop the record of ``identifier``. Returns True if one existed."""
        ensure_canonical(identifier)
        with self._lock:
            return self._records.pop(identifier, None) is not None

    def sweep(self) -> int:
        """Remove expired records. Returns the number removed."""
        ttl = self.config.otp_ttl_ms
        with self._lock:
            now = self._clock()
            expired = [
                key for key, record in self._records.items()
                if record.is_expired(now, ttl)
            ]
            for key in expired:
                del self._records[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
