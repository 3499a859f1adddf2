"""
OTP Shield Exceptions
=====================
Exception classes for the OTP security store.

Verification results and admission denials are NOT exceptions; callers
branch on the returned outcome. Only genuinely exceptional conditions
live here.
"""

from typing import Optional


class OTPShieldError(Exception):
    """Base exception for all OTP Shield errors."""
    pass


class EntropyUnavailable(OTPShieldError):
    """Raised when the operating system CSPRNG cannot produce random bytes."""
    pass


class ConfigurationError(OTPShieldError, ValueError):
    """Raised when a configuration knob holds an invalid value."""
    pass


class InvalidIdentifier(OTPShieldError, ValueError):
    """Raised when an identifier is not in canonical digit-only form."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            "Identifier must be normalized to digits only before use"
        )


class DeliveryError(OTPShieldError):
    """Raised when a delivery channel fails to hand a code to the user."""

    def __init__(
        self,
        message: str,
        channel: str = "unknown",
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.channel = channel
        self.error_code = error_code
        super().__init__(f"[{channel}] {message} (code: {error_code})")
