"""
Eviction Scheduler
==================
Periodic background sweep of expired records, stale windows and lapsed blocks.

Correctness never depends on the sweep (every read re-checks expiry); it only
bounds memory held by entries nobody looks up again.
"""

import threading
from dataclasses import dataclass
from typing import Optional
import structlog

from .ip_block import IPBlockRegistry
from .metrics import OTP_EVICTIONS
from .otp import OTPStore
from .rate_limit import IssuanceRateLimiter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SweepReport:
    """Entries removed by one sweep."""
    otp_records: int = 0
    rate_windows: int = 0
    ip_blocks: int = 0

    @property
    def total(self) -> int:
        return self.otp_records + self.rate_windows + self.ip_blocks


class EvictionScheduler:
    """
    Runs ``run_once`` every ``interval_ms`` on a daemon thread.

    Example:
        scheduler = EvictionScheduler(store, limiter, ip_blocks, interval_ms=300_000)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        store: OTPStore,
        rate_limiter: IssuanceRateLimiter,
        ip_blocks: IPBlockRegistry,
        interval_ms: int = 300_000,
    ):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.store = store
        self.rate_limiter = rate_limiter
        self.ip_blocks = ip_blocks
        self.interval_ms = interval_ms
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SweepReport:
        """Sweep each map once, one lock at a time."""
        report = SweepReport(
            otp_records=self.store.sweep(),
            rate_windows=self.rate_limiter.sweep(),
            ip_blocks=self.ip_blocks.sweep(),
        )

        OTP_EVICTIONS.labels(kind="otp_record").inc(report.otp_records)
        OTP_EVICTIONS.labels(kind="rate_window").inc(report.rate_windows)
        OTP_EVICTIONS.labels(kind="ip_block").inc(report.ip_blocks)

        if report.total:
            logger.info(
                "otp_sweep_completed",
                otp_records=report.otp_records,
                rate_windows=report.rate_windows,
                ip_blocks=report.ip_blocks,
            )
        return report

    def start(self) -> None:
        """Start the background thread. Calling twice is a no-op."""
        with self._state_lock:
            if self.running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run,
                name="otp-shield-sweeper",
                daemon=True,
            )
            self._thread.start()
        logger.info("otp_sweeper_started", interval_ms=self.interval_ms)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the thread to exit and wait for it."""
        with self._state_lock:
            thread = self._thread
            self._stop_event.set()
            self._thread = None
        if thread is not None:
            thread.join(timeout)
            logger.info("otp_sweeper_stopped")

    def _run(self) -> None:
        interval = self.interval_ms / 1000
        while not self._stop_event.wait(interval):
            try:
                self.run_once()
            except Exception:
                # Keep sweeping; the next pass retries the same work
                logger.exception("otp_sweep_failed")
