"""
OTP Shield
==========
In-memory OTP security store: secure code generation, hashed storage with
expiry, attempt limiting, issuance rate limiting and temporary IP blocking.
"""

__version__ = "0.1.0"

# Configuration
from otp_shield.config import OTPShieldConfig

# Clock
from otp_shield.clock import Clock, ManualClock, system_clock

# Exceptions
from otp_shield.exceptions import (
    OTPShieldError,
    EntropyUnavailable,
    ConfigurationError,
    InvalidIdentifier,
    DeliveryError,
)

# Identifiers
from otp_shield.messaging import (
    normalize_identifier,
    is_valid_identifier,
    mask_identifier,
)

# OTP
from otp_shield.otp import (
    generate_code,
    CredentialHasher,
    fingerprint_device,
    OTPStore,
    OTPRecord,
    VerifyResult,
    VerifyStatus,
)

# Rate Limiting
from otp_shield.rate_limit import (
    IssuanceRateLimiter,
    RateLimitDecision,
    RateLimitWindow,
)

# IP Blocking
from otp_shield.ip_block import (
    IPBlockRegistry,
    BlockReason,
    BlockStatus,
)

# Delivery
from otp_shield.delivery import (
    DeliveryChannel,
    SendResult,
    WhatsAppTemplateChannel,
    RecordingChannel,
)

# Sweeper
from otp_shield.sweeper import EvictionScheduler, SweepReport

# Service
from otp_shield.service import (
    OTPVerificationService,
    OTPShield,
    RequestCodeResult,
    RequestCodeStatus,
    SubmitCodeResult,
    SubmitCodeStatus,
    build_service,
)

# Introspection
from otp_shield.introspection import SecurityInspector

# Logging
from otp_shield.log_config import setup_logging

__all__ = [
    # Configuration
    "OTPShieldConfig",
    # Clock
    "Clock",
    "ManualClock",
    "system_clock",
    # Exceptions
    "OTPShieldError",
    "EntropyUnavailable",
    "ConfigurationError",
    "InvalidIdentifier",
    "DeliveryError",
    # Identifiers
    "normalize_identifier",
    "is_valid_identifier",
    "mask_identifier",
    # OTP
    "generate_code",
    "CredentialHasher",
    "fingerprint_device",
    "OTPStore",
    "OTPRecord",
    "VerifyResult",
    "VerifyStatus",
    # Rate Limiting
    "IssuanceRateLimiter",
    "RateLimitDecision",
    "RateLimitWindow",
    # IP Blocking
    "IPBlockRegistry",
    "BlockReason",
    "BlockStatus",
    # Delivery
    "DeliveryChannel",
    "SendResult",
    "WhatsAppTemplateChannel",
    "RecordingChannel",
    # Sweeper
    "EvictionScheduler",
    "SweepReport",
    # Service
    "OTPVerificationService",
    "OTPShield",
    "RequestCodeResult",
    "RequestCodeStatus",
    "SubmitCodeResult",
    "SubmitCodeStatus",
    "build_service",
    # Introspection
    "SecurityInspector",
    # Logging
    "setup_logging",
]
