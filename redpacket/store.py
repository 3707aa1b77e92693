import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .models import AccountId, Balance, BlockNumber, ClaimRecord, Packet, PacketId

logger = logging.getLogger(__name__)


class InMemoryPacketStore:
    """
    Packet records, claim records and the packet id counter.

    Single-key reads and writes are atomic. ``locked(packet_id)`` hands out an
    exclusive section per stored packet so a caller can read, validate and write back
    without another writer interleaving on the same id.
    """

    def __init__(self):
        self.packets: dict[PacketId, dict] = {}
        self.claims: dict[PacketId, dict[AccountId, dict]] = {}
        self._next_id: PacketId = 0
        self._data_lock = threading.Lock()
        self._packet_locks: dict[PacketId, threading.Lock] = {}

    def next_id(self) -> PacketId:
        with self._data_lock:
            packet_id = self._next_id
            self._next_id += 1
            return packet_id

    def peek_next_id(self) -> PacketId:
        with self._data_lock:
            return self._next_id

    def get(self, packet_id: PacketId) -> Optional[Packet]:
        with self._data_lock:
            data = self.packets.get(packet_id)
            return Packet(**data) if data else None

    def put(self, packet_id: PacketId, packet: Packet) -> None:
        with self._data_lock:
            self.packets[packet_id] = packet.model_dump()
            self.claims.setdefault(packet_id, {})
            self._packet_locks.setdefault(packet_id, threading.Lock())

    def claims_of(self, packet_id: PacketId) -> set:
        with self._data_lock:
            return set(self.claims.get(packet_id, {}))

    def claim_records(self, packet_id: PacketId) -> list[ClaimRecord]:
        with self._data_lock:
            return [ClaimRecord(**c) for c in self.claims.get(packet_id, {}).values()]

    def add_claim(
        self, packet_id: PacketId, account: AccountId, amount: Balance, block: BlockNumber
    ) -> None:
        with self._data_lock:
            records = self.claims.setdefault(packet_id, {})
            if account in records:
                raise KeyError(f"{account} already recorded as claimant of packet {packet_id}")
            records[account] = {
                "packet_id": packet_id,
                "account": account,
                "amount": amount,
                "claimed_at": block,
            }

    def list_packets(self, owner: Optional[AccountId] = None) -> list[Packet]:
        with self._data_lock:
            packets = [Packet(**p) for p in self.packets.values()]
        if owner is not None:
            packets = [p for p in packets if p.owner == owner]
        packets.sort(key=lambda p: p.id)
        return packets

    @contextmanager
    def locked(self, packet_id: PacketId) -> Iterator[bool]:
        """Yields True while holding the packet's lock, False for ids never stored."""
        with self._data_lock:
            lock = self._packet_locks.get(packet_id)
        if lock is None:
            yield False
            return
        with lock:
            yield True
