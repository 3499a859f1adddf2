"""
OTP Shield Configuration
========================
Tunable knobs for code lifetime, attempt ceilings, rate windows and IP blocks.

All durations are in milliseconds. Values can be supplied explicitly or read
from the environment:

    OTP_SHIELD_OTP_TTL_MS                 (default 300000, 5 minutes)
    OTP_SHIELD_MAX_ATTEMPTS               (default 3)
    OTP_SHIELD_RATE_WINDOW_MS             (default 900000, 15 minutes)
    OTP_SHIELD_MAX_REQUESTS_PER_WINDOW    (default 3)
    OTP_SHIELD_IP_BLOCK_MS                (default 3600000, 60 minutes)
    OTP_SHIELD_ATTEMPT_BLOCK_MS           (default 1800000, 30 minutes)
    OTP_SHIELD_CODE_LENGTH                (default 6)
    OTP_SHIELD_SWEEP_INTERVAL_MS          (default 300000, 5 minutes)
    OTP_SHIELD_DEFAULT_COUNTRY_CODE       (default "91")
    OTP_SHIELD_DEBUG_ENDPOINTS            (default "false")
"""

import os
from dataclasses import dataclass, fields

from .exceptions import ConfigurationError

ENV_PREFIX = "OTP_SHIELD_"

MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 10

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class OTPShieldConfig:
    """Configuration for the OTP security store."""
    otp_ttl_ms: int = 300_000
    max_attempts: int = 3
    rate_window_ms: int = 900_000
    max_requests_per_window: int = 3
    ip_block_ms: int = 3_600_000
    attempt_block_ms: int = 1_800_000
    code_length: int = 6
    sweep_interval_ms: int = 300_000
    default_country_code: str = "91"
    debug_endpoints: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError if any knob is out of range."""
        for name in (
            "otp_ttl_ms",
            "max_attempts",
            "rate_window_ms",
            "max_requests_per_window",
            "ip_block_ms",
            "attempt_block_ms",
            "sweep_interval_ms",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if not MIN_CODE_LENGTH <= self.code_length <= MAX_CODE_LENGTH:
            raise ConfigurationError(
                f"code_length must be between {MIN_CODE_LENGTH} and "
                f"{MAX_CODE_LENGTH}, got {self.code_length!r}"
            )

        if not self.default_country_code.isdigit():
            raise ConfigurationError("default_country_code must contain digits only")

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "OTPShieldConfig":
        """
        Build a configuration from environment variables.

        Args:
            prefix: Environment variable prefix

        Returns:
            Validated OTPShieldConfig
        """
        values = {}
        for field in fields(cls):
            raw = os.getenv(f"{prefix}{field.name.upper()}")
            if raw is None:
                continue
            if field.type in (bool, "bool"):
                values[field.name] = raw.strip().lower() in _TRUE_VALUES
            elif field.type in (int, "int"):
                try:
                    values[field.name] = int(raw)
                except ValueError as e:
                    raise ConfigurationError(
                        f"{prefix}{field.name.upper()} must be an integer, got {raw!r}"
                    ) from e
            else:
                values[field.name] = raw.strip()
        return cls(**values)
