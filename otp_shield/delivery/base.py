"""
Delivery Channel Base
=====================
Contract for anything that hands a fresh code to the user out of band.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Any
import structlog

from ..exceptions import DeliveryError

logger = structlog.get_logger(__name__)


@dataclass
class SendResult:
    """Result of a code delivery."""
    success: bool
    message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    raw_response: Any = None


class DeliveryChannel(ABC):
    """
    Abstract base class for delivery channels.

    Implementations report failures through ``SendResult`` rather than
    raising, so the caller decides how to surface them.
    """

    name: str = "base"

    def __init__(self):
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize the channel (e.g., create HTTP clients)."""
        self._is_initialized = True
        logger.info("delivery_channel_initialized", channel=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        self._is_initialized = False
        logger.info("delivery_channel_closed", channel=self.name)

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    @abstractmethod
    async def send(self, identifier: str, code: str) -> SendResult:
        """
        Deliver ``code`` to ``identifier``.

        Args:
            identifier: Canonical identifier (digit-only phone number)
            code: Plaintext code

        Returns:
            SendResult with the channel's message id on success
        """
        pass

    async def send_or_raise(self, identifier: str, code: str) -> str:
        """
        Deliver ``code`` and return the message id.

        Raises:
            DeliveryError: If the channel reports a failure
        """
        result = await self.send(identifier, code)
        if not result.success:
            raise DeliveryError(
                result.error_message or "Delivery failed",
                channel=self.name,
                error_code=result.error_code,
            )
        return result.message_id
