"""
RedPacket airdrops over a reservable account ledger

This module provides:
- Packet creation that reserves quota * count from the creator
- One claim per account, paid out of the reserve, until quota, funds or time run out
- Owner settlement releasing whatever was left unclaimed
- Per-packet serialized claims and distributions
- Created / Claimed / Distributed events for observers
"""

from .errors import RedPacketError
from .models import (
    ClaimRecord,
    EventType,
    Packet,
    PacketEvent,
    PacketStatus,
)
from .service import RedPacketService, uniform_share

__all__ = [
    "ClaimRecord",
    "EventType",
    "Packet",
    "PacketEvent",
    "PacketStatus",
    "RedPacketError",
    "RedPacketService",
    "uniform_share",
]
