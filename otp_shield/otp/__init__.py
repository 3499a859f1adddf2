"""
OTP Generation and Verification
================================
Secure code generation, hashed storage and brute-force protection.
"""

from .models import OTPRecord, RecordInfo, VerifyResult, VerifyStatus
from .generator import generate_code, code_range
from .hashing import CredentialHasher, fingerprint_device, FINGERPRINT_LENGTH
from .store import OTPStore

__all__ = [
    # Models
    "OTPRecord",
    "RecordInfo",
    "VerifyResult",
    "VerifyStatus",
    # Generation
    "generate_code",
    "code_range",
    # Hashing
    "CredentialHasher",
    "fingerprint_device",
    "FINGERPRINT_LENGTH",
    # Store
    "OTPStore",
]
