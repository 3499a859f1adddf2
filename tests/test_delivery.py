"""
Tests for the WhatsApp delivery channel
=======================================
"""

import json

import httpx
import pytest

from otp_shield.delivery import WhatsAppTemplateChannel

PHONE = "919876543210"


def make_channel(handler):
    return WhatsAppTemplateChannel(
        access_token="test-token",
        phone_number_id="1234567890",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_sends_template_message():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messages": [{"id": "wamid.ABC"}]})

    async with make_channel(handler) as channel:
        result = await channel.send(PHONE, "482913")

    assert result.success is True
    assert result.message_id == "wamid.ABC"
    assert captured["url"] == "https://graph.facebook.com/v22.0/1234567890/messages"
    assert captured["auth"] == "Bearer test-token"

    body = captured["body"]
    assert body["to"] == PHONE
    assert body["template"]["name"] == "otp_verification"
    body_param, button = body["template"]["components"]
    assert body_param["parameters"][0]["text"] == "482913"
    assert button["sub_type"] == "url"
    assert button["parameters"][0]["text"] == "482913"


@pytest.mark.asyncio
async def test_api_error_becomes_failed_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"error": {"code": 132000, "message": "Number of parameters does not match"}},
        )

    async with make_channel(handler) as channel:
        result = await channel.send(PHONE, "482913")

    assert result.success is False
    assert result.error_code == "132000"
    assert result.error_message == "Number of parameters does not match"


@pytest.mark.asyncio
async def test_transport_error_becomes_failed_result():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_channel(handler) as channel:
        result = await channel.send(PHONE, "482913")

    assert result.success is False
    assert result.error_code == "transport_error"


@pytest.mark.asyncio
async def test_send_requires_initialize():
    channel = make_channel(lambda request: httpx.Response(200))

    with pytest.raises(RuntimeError):
        await channel.send(PHONE, "482913")


@pytest.mark.asyncio
async def test_unexpected_success_body_still_succeeds():
    """A 2xx reply that is not a JSON object yields a result without a message id."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": "wamid.ABC"}])

    async with make_channel(handler) as channel:
        result = await channel.send(PHONE, "482913")

    assert result.success is True
    assert result.message_id is None
    assert result.raw_response == [{"id": "wamid.ABC"}]
