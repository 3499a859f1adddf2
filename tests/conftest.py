"""
Shared fixtures for OTP Shield tests.
"""

import pytest

from otp_shield.clock import ManualClock
from otp_shield.config import OTPShieldConfig
from otp_shield.delivery import RecordingChannel
from otp_shield.ip_block import IPBlockRegistry
from otp_shield.otp import OTPStore
from otp_shield.rate_limit import IssuanceRateLimiter
from otp_shield.service import build_service

PHONE = "15550100"
IP = "203.0.113.7"
UA = "Mozilla/5.0 (Linux; Android 14)"


@pytest.fixture
def clock():
    return ManualClock(start_ms=1_000_000)


@pytest.fixture
def config():
    return OTPShieldConfig()


@pytest.fixture
def ip_blocks(clock):
    return IPBlockRegistry(clock=clock)


@pytest.fixture
def limiter(ip_blocks, config, clock):
    return IssuanceRateLimiter(ip_blocks, config=config, clock=clock)


@pytest.fixture
def store(ip_blocks, config, clock):
    return OTPStore(ip_blocks, config=config, clock=clock)


@pytest.fixture
def fixed_store(ip_blocks, config, clock):
    """Store whose generator always returns 482913."""
    return OTPStore(
        ip_blocks,
        config=config,
        clock=clock,
        code_generator=lambda length: "482913",
    )


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def shield(channel, config, clock):
    return build_service(channel, config=config, clock=clock)
