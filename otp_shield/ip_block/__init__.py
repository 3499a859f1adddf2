"""
IP Blocking
===========
Temporary blocks against the network origin of abuse.
"""

from .models import BlockReason, BlockStatus, IPBlock
from .registry import IPBlockRegistry

__all__ = [
    "BlockReason",
    "BlockStatus",
    "IPBlock",
    "IPBlockRegistry",
]
