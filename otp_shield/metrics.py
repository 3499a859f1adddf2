"""
OTP Shield Metrics
==================
Prometheus counters for issuance, verification and abuse blocking.

Metrics live on a dedicated registry so embedding services decide whether
and where to expose them:

    from otp_shield.metrics import OTP_REGISTRY, get_metrics_text
    app.mount("/metrics", make_asgi_app(registry=OTP_REGISTRY))
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

OTP_REGISTRY = CollectorRegistry()

OTP_ISSUED = Counter(
    name="otp_issued_total",
    documentation="Total number of one-time passcodes issued",
    registry=OTP_REGISTRY,
)

OTP_VERIFICATIONS = Counter(
    name="otp_verifications_total",
    documentation="Verification attempts by outcome",
    labelnames=["outcome"],
    registry=OTP_REGISTRY,
)

OTP_ADMISSION_DENIED = Counter(
    name="otp_admission_denied_total",
    documentation="Requests refused before reaching the store",
    labelnames=["reason"],
    registry=OTP_REGISTRY,
)

OTP_IP_BLOCKS = Counter(
    name="otp_ip_blocks_total",
    documentation="IP blocks registered by reason",
    labelnames=["reason"],
    registry=OTP_REGISTRY,
)

OTP_DEVICE_MISMATCH = Counter(
    name="otp_device_mismatch_total",
    documentation="Verifications whose device fingerprint differs from issuance",
    registry=OTP_REGISTRY,
)

OTP_EVICTIONS = Counter(
    name="otp_evictions_total",
    documentation="Entries removed by the background sweep",
    labelnames=["kind"],
    registry=OTP_REGISTRY,
)

OTP_DELIVERY_FAILURES = Counter(
    name="otp_delivery_failures_total",
    documentation="Codes that a delivery channel failed to send",
    labelnames=["channel"],
    registry=OTP_REGISTRY,
)


def get_metrics_text() -> bytes:
    """Render all OTP Shield metrics in Prometheus exposition format."""
    return generate_latest(OTP_REGISTRY)


__all__ = [
    "OTP_REGISTRY",
    "OTP_ISSUED",
    "OTP_VERIFICATIONS",
    "OTP_ADMISSION_DENIED",
    "OTP_IP_BLOCKS",
    "OTP_DEVICE_MISMATCH",
    "OTP_EVICTIONS",
    "OTP_DELIVERY_FAILURES",
    "CONTENT_TYPE_LATEST",
    "get_metrics_text",
]
