"""
OTP HTTP Router
===============
Thin FastAPI glue over ``OTPVerificationService``.

Usage:
    shield = build_service(channel, config)
    app.include_router(create_otp_router(shield.service))
"""

import math
from typing import Optional
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import OTPShieldConfig
from .introspection import SecurityInspector
from .messaging import is_valid_identifier, normalize_identifier
from .service import (
    OTPVerificationService,
    RequestCodeStatus,
    SubmitCodeStatus,
)

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"


class SendOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", pattern=PHONE_PATTERN)


class VerifyOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", pattern=PHONE_PATTERN)
    otp: str = Field(..., min_length=4, max_length=10, pattern=r"^\d+$")


_SUBMIT_MESSAGES = {
    SubmitCodeStatus.NOT_FOUND: "OTP not found or expired",
    SubmitCodeStatus.EXPIRED: "OTP has expired",
    SubmitCodeStatus.MISMATCH: "Invalid OTP",
    SubmitCodeStatus.ATTEMPTS_EXCEEDED: "Maximum verification attempts exceeded",
    SubmitCodeStatus.IP_BLOCKED: "Too many requests from this IP",
}


def get_client_ip(request: Request, trust_proxy_headers: bool = True) -> str:
    """
    Extract the client IP.

    Proxy headers are only honoured with ``trust_proxy_headers``; set it to
    False when clients reach the app directly, or they can pick their own IP.
    """
    if not trust_proxy_headers:
        return request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent") or "unknown"


def _retry_after_seconds(retry_after_ms: Optional[int]) -> Optional[int]:
    if retry_after_ms is None:
        return None
    return math.ceil(retry_after_ms / 1000)


def _too_many(error: str, message: str, retry_after_ms: Optional[int]) -> JSONResponse:
    retry_after = _retry_after_seconds(retry_after_ms)
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=429,
        content={"error": error, "message": message, "retryAfter": retry_after},
        headers=headers,
    )


def create_otp_router(
    service: OTPVerificationService,
    inspector: Optional[SecurityInspector] = None,
    prefix: str = "/auth",
    trust_proxy_headers: bool = True,
) -> APIRouter:
    """
    Create the OTP router.

    Args:
        service: Verification service
        inspector: Optional diagnostics; the status route 404s when absent or disabled
        prefix: Route prefix
        trust_proxy_headers: Take the client IP from X-Forwarded-For / X-Real-IP

    Returns:
        FastAPI router with /send-otp, /verify-otp and /security-status
    """
    router = APIRouter(prefix=prefix, tags=["OTP"])
    config: OTPShieldConfig = service.store.config
    country = config.default_country_code

    def invalid_number() -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid phone number format"})

    @router.post("/send-otp")
    async def send_otp(body: SendOTPRequest, request: Request):
        if not is_valid_identifier(body.phone_number):
            return invalid_number()

        identifier = normalize_identifier(body.phone_number, country)
        result = await service.request_code(
            identifier,
            get_client_ip(request, trust_proxy_headers),
            get_user_agent(request),
        )

        if result.status == RequestCodeStatus.SENT:
            return {
                "success": True,
                "message": "OTP sent successfully",
                "messageId": result.message_id,
            }
        if result.status == RequestCodeStatus.IP_BLOCKED:
            return _too_many("IP blocked", "Too many requests from this IP", result.retry_after_ms)
        if result.status == RequestCodeStatus.RATE_LIMITED:
            return _too_many(
                "Too many requests",
                "Rate limit exceeded. Please try again later.",
                result.retry_after_ms,
            )
        return JSONResponse(
            status_code=502,
            content={"error": "Failed to send OTP", "message": result.error},
        )

    @router.post("/verify-otp")
    async def verify_otp(body: VerifyOTPRequest, request: Request):
        if not is_valid_identifier(body.phone_number):
            return invalid_number()
        if len(body.otp) != config.code_length:
            return JSONResponse(
                status_code=400,
                content={"error": f"OTP must be {config.code_length} digits"},
            )

        identifier = normalize_identifier(body.phone_number, country)
        result = service.submit_code(
            identifier,
            body.otp,
            get_client_ip(request, trust_proxy_headers),
            get_user_agent(request),
        )

        if result.success:
            return {
                "success": True,
                "message": "OTP verified successfully",
                "phoneNumber": identifier,
            }
        if result.status in (SubmitCodeStatus.IP_BLOCKED, SubmitCodeStatus.ATTEMPTS_EXCEEDED):
            return _too_many(
                "Too many attempts",
                _SUBMIT_MESSAGES[result.status],
                result.retry_after_ms,
            )
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": _SUBMIT_MESSAGES[result.status],
                "attemptsRemaining": result.attempts_remaining,
            },
        )

    @router.get("/security-status/{phone_number}")
    async def security_status(phone_number: str, request: Request):
        if inspector is None or not inspector.enabled:
            return JSONResponse(status_code=404, content={"error": "Not found"})
        if not is_valid_identifier(phone_number):
            return invalid_number()

        identifier = normalize_identifier(phone_number, country)
        return inspector.security_status(identifier, get_client_ip(request, trust_proxy_headers))

    return router
