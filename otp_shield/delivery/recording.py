"""
Recording Channel
=================
In-memory delivery channel for development and tests.
"""

import itertools
from typing import List, Optional, Tuple

from .base import DeliveryChannel, SendResult


class RecordingChannel(DeliveryChannel):
    """
    Keeps delivered codes in memory instead of sending them.

    Never use in production: codes are retained in plaintext.
    """

    name = "recording"

    def __init__(self, fail_with: Optional[str] = None):
        super().__init__()
        self.fail_with = fail_with
        self.sent: List[Tuple[str, str]] = []
        self._ids = itertools.count(1)

    async def send(self, identifier: str, code: str) -> SendResult:
        if self.fail_with:
            return SendResult(
                success=False,
                error_code="recording_failure",
                error_message=self.fail_with,
            )
        self.sent.append((identifier, code))
        return SendResult(success=True, message_id=f"rec-{next(self._ids)}")

    def last_code(self, identifier: str) -> Optional[str]:
        """Most recent code delivered to ``identifier``."""
        for sent_to, code in reversed(self.sent):
            if sent_to == identifier:
                return code
        return None
