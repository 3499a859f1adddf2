"""
OTP Delivery Channels
=====================
Out-of-band delivery of freshly issued codes.
"""

from .base import DeliveryChannel, SendResult
from .whatsapp import WhatsAppTemplateChannel, GRAPH_API_URL
from .recording import RecordingChannel

__all__ = [
    "DeliveryChannel",
    "SendResult",
    "WhatsAppTemplateChannel",
    "GRAPH_API_URL",
    "RecordingChannel",
]
