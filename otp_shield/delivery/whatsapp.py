"""
WhatsApp Template Channel
=========================
Delivers codes through the WhatsApp Cloud API as an authentication template.
"""

import httpx
from typing import Optional, Dict, Any
import structlog

from ..messaging import mask_identifier
from .base import DeliveryChannel, SendResult

logger = structlog.get_logger(__name__)

GRAPH_API_URL = "https://graph.facebook.com/v22.0"


class WhatsAppTemplateChannel(DeliveryChannel):
    """
    WhatsApp Cloud API channel.

    The template is expected to take the code as its single body parameter
    and as the parameter of its URL ("copy code") button.
    """

    name = "whatsapp"

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        template_name: str = "otp_verification",
        language_code: str = "en_US",
        base_url: str = GRAPH_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            access_token: Cloud API bearer token
            phone_number_id: Sending phone number id
            template_name: Approved authentication template
            language_code: Template language
            base_url: Graph API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        super().__init__()
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.template_name = template_name
        self.language_code = language_code
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self.phone_number_id}/messages"

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    def build_payload(self, identifier: str, code: str) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": identifier,
            "type": "template",
            "template": {
                "name": self.template_name,
                "language": {"code": self.language_code},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": code}],
                    },
                    {
                        "type": "button",
                        "sub_type": "url",
                        "index": 0,
                        "parameters": [{"type": "text", "text": code}],
                    },
                ],
            },
        }

    async def send(self, identifier: str, code: str) -> SendResult:
        """Send the code via a WhatsApp template message."""
        if not self._client:
            raise RuntimeError("Channel not initialized")

        try:
            response = await self._client.post(
                self.messages_url,
                json=self.build_payload(identifier, code),
            )
        except httpx.HTTPError as e:
            logger.error(
                "whatsapp_send_failed",
                identifier=mask_identifier(identifier),
                error=str(e),
            )
            return SendResult(
                success=False,
                error_code="transport_error",
                error_message=str(e),
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_success:
            messages = data.get("messages") if isinstance(data, dict) else None
            first = messages[0] if isinstance(messages, list) and messages else {}
            message_id = first.get("id") if isinstance(first, dict) else None
            logger.info(
                "whatsapp_otp_sent",
                identifier=mask_identifier(identifier),
                message_id=message_id,
            )
            return SendResult(success=True, message_id=message_id, raw_response=data)

        error = data.get("error", {}) if isinstance(data, dict) else {}
        logger.error(
            "whatsapp_send_rejected",
            identifier=mask_identifier(identifier),
            status_code=response.status_code,
            error_code=error.get("code"),
        )
        return SendResult(
            success=False,
            error_code=str(error.get("code", response.status_code)),
            error_message=error.get("message", "Unknown error"),
            raw_response=data,
        )
