import logging
from typing import Callable, Optional

from .balance import saturating_mul
from .clock import BlockClock, Clock
from .config import DEFAULT_MAX_BALANCE
from .errors import (
    AlreadyClaimedError,
    AlreadyDistributedError,
    ClaimLimitReachedError,
    InsufficientBalanceError,
    InvalidAmountError,
    NotDistributableError,
    NotOwnerError,
    PacketExhaustedError,
    PacketExpiredError,
    PacketNotFoundError,
    RedPacketError,
)
from .events import EventBus
from .ledger import InMemoryLedger, LedgerAdapter
from .models import (
    AccountId,
    Balance,
    BlockNumber,
    ClaimDecision,
    ClaimRecord,
    DistributeDecision,
    EventType,
    MAX_CLAIM_COUNT,
    Packet,
    PacketEvent,
    PacketId,
    PacketStatus,
)
from .store import InMemoryPacketStore

logger = logging.getLogger(__name__)

SharePolicy = Callable[[Packet], Balance]


def uniform_share(packet: Packet) -> Balance:
    """Every claimant gets the same slice of the original total."""
    return packet.total // packet.count


class RedPacketService:
    """
    Lifecycle engine for red packets: create, claim, distribute.

    Holds no packet state itself. Each state-changing call on an existing
    packet runs inside the store's exclusive section for that packet id and
    follows the same order: validate (no side effects), move funds through
    the ledger, commit the new records, emit the event.
    """

    def __init__(
        self,
        ledger: Optional[LedgerAdapter] = None,
        store: Optional[InMemoryPacketStore] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
        share_policy: SharePolicy = uniform_share,
        max_balance: int = DEFAULT_MAX_BALANCE,
    ):
        self.ledger = ledger if ledger is not None else InMemoryLedger(max_balance=max_balance)
        self.store = store or InMemoryPacketStore()
        self.clock = clock or BlockClock()
        self.events = events or EventBus()
        self.share_policy = share_policy
        self.max_balance = max_balance

    def create(self, caller: AccountId, quota: Balance, count: int, expires_delta: BlockNumber) -> PacketId:
        try:
            total = self._check_create(caller, quota, count, expires_delta)
        except RedPacketError as e:
            logger.debug("create rejected for %s: %s", caller, e.code)
            raise

        self.ledger.reserve(caller, total)

        now = self.clock.now()
        packet_id = self.store.next_id()
        packet = Packet(
            id=packet_id,
            owner=caller,
            total=total,
            unclaimed=total,
            count=count,
            claims_made=0,
            created_at=now,
            expires_at=now + expires_delta,
        )
        self.store.put(packet_id, packet)
        logger.info("Created packet %s: owner=%s total=%s count=%s", packet_id, caller, total, count)

        self.events.emit(PacketEvent(
            event_type=EventType.CREATED,
            packet_id=packet_id,
            account=caller,
            amount=total,
            count=count,
            block=now,
        ))
        return packet_id

    def claim(self, caller: AccountId, packet_id: PacketId) -> Balance:
        with self.store.locked(packet_id) as held:
            try:
                packet = self._load(packet_id, held)
                decision = self._check_claim(packet, self.store.claims_of(packet_id), caller, self.clock.now())
            except RedPacketError as e:
                logger.debug("claim on packet %s rejected for %s: %s", packet_id, caller, e.code)
                raise

            self.ledger.transfer_reserved(decision.owner, decision.claimant, decision.amount)
            packet = self._commit_claim(packet, decision)
            logger.info(
                "Packet %s claimed by %s: amount=%s unclaimed=%s claims=%s/%s",
                packet_id, caller, decision.amount, packet.unclaimed, packet.claims_made, packet.count,
            )

            self.events.emit(PacketEvent(
                event_type=EventType.CLAIMED,
                packet_id=packet_id,
                account=caller,
                amount=decision.amount,
                block=decision.block,
            ))
        return decision.amount

    def distribute(self, caller: AccountId, packet_id: PacketId) -> Balance:
        with self.store.locked(packet_id) as held:
            try:
                packet = self._load(packet_id, held)
                decision = self._check_distribute(packet, caller, self.clock.now())
            except RedPacketError as e:
                logger.debug("distribute on packet %s rejected for %s: %s", packet_id, caller, e.code)
                raise

            released = self.ledger.unreserve(decision.owner, decision.amount)
            if released != decision.amount:
                logger.warning(
                    "Packet %s expected to release %s but ledger released %s",
                    packet_id, decision.amount, released,
                )
            packet = self._commit_distribute(packet, decision, released)
            logger.info("Distributed packet %s: released=%s to %s", packet_id, released, packet.owner)

            self.events.emit(PacketEvent(
                event_type=EventType.DISTRIBUTED,
                packet_id=packet_id,
                account=packet.owner,
                amount=released,
                block=decision.block,
            ))
        return released

    # Queries

    def get_packet(self, packet_id: PacketId) -> Packet:
        return self._load(packet_id)

    def get_claims(self, packet_id: PacketId) -> list[ClaimRecord]:
        self._load(packet_id)
        return self.store.claim_records(packet_id)

    def list_packets(self, owner: Optional[AccountId] = None) -> list[Packet]:
        return self.store.list_packets(owner)

    def next_packet_id(self) -> PacketId:
        return self.store.peek_next_id()

    def status(self, packet_id: PacketId) -> PacketStatus:
        return self._load(packet_id).status(self.clock.now())

    def is_expired(self, packet_id: PacketId) -> bool:
        return self._load(packet_id).is_expired(self.clock.now())

    def is_exhausted(self, packet_id: PacketId) -> bool:
        return self._load(packet_id).is_exhausted()

    def can_distribute(self, packet_id: PacketId) -> bool:
        return self._load(packet_id).can_distribute(self.clock.now())

    # Validation: reads only, returns a decision or raises

    def _load(self, packet_id: PacketId, held: bool = True) -> Packet:
        packet = self.store.get(packet_id) if held else None
        if packet is None:
            raise PacketNotFoundError(f"Packet {packet_id} not found")
        return packet

    def _check_create(self, caller: AccountId, quota: Balance, count: int, expires_delta: BlockNumber) -> Balance:
        if count <= 0:
            raise InvalidAmountError("count must be greater than zero")
        if count > MAX_CLAIM_COUNT:
            raise InvalidAmountError(f"count must not exceed {MAX_CLAIM_COUNT}")
        if quota <= 0:
            raise InvalidAmountError("quota must be greater than zero")
        if expires_delta <= 0:
            raise InvalidAmountError("expires_delta must be greater than zero")

        total = saturating_mul(quota, count, self.max_balance)
        free = self.ledger.balance_of(caller)
        if free < total:
            raise InsufficientBalanceError(f"Account {caller} has {free}, packet needs {total}")
        return total

    def _check_claim(self, packet: Packet, claimants: set, caller: AccountId, now: BlockNumber) -> ClaimDecision:
        if packet.distributed:
            raise AlreadyDistributedError(f"Packet {packet.id} was already distributed")
        if packet.is_expired(now):
            raise PacketExpiredError(f"Packet {packet.id} expired at block {packet.expires_at}")
        if packet.claims_made >= packet.count:
            raise ClaimLimitReachedError(f"Packet {packet.id} reached its {packet.count} claims")
        if caller in claimants:
            raise AlreadyClaimedError(f"{caller} already claimed packet {packet.id}")
        if packet.unclaimed <= 0:
            raise PacketExhaustedError(f"Packet {packet.id} has no funds left")

        return ClaimDecision(
            packet_id=packet.id,
            owner=packet.owner,
            claimant=caller,
            amount=min(packet.unclaimed, self.share_policy(packet)),
            block=now,
        )

    def _check_distribute(self, packet: Packet, caller: AccountId, now: BlockNumber) -> DistributeDecision:
        if packet.owner != caller:
            raise NotOwnerError(f"{caller} does not own packet {packet.id}")
        if packet.distributed:
            raise AlreadyDistributedError(f"Packet {packet.id} was already distributed")
        if not (packet.is_exhausted() or packet.is_expired(now)):
            raise NotDistributableError(
                f"Packet {packet.id} is still open until block {packet.expires_at} "
                f"with {packet.count - packet.claims_made} claims left"
            )
        return DistributeDecision(packet_id=packet.id, owner=packet.owner, amount=packet.unclaimed, block=now)

    # Side effects

    def _commit_claim(self, packet: Packet, decision: ClaimDecision) -> Packet:
        updated = packet.model_copy(update={
            "unclaimed": packet.unclaimed - decision.amount,
            "claims_made": packet.claims_made + 1,
        })
        self.store.add_claim(packet.id, decision.claimant, decision.amount, decision.block)
        self.store.put(packet.id, updated)
        return updated

    def _commit_distribute(self, packet: Packet, decision: DistributeDecision, released: Balance) -> Packet:
        updated = packet.model_copy(update={
            "distributed": True,
            "distributed_at": decision.block,
            "released": released,
        })
        self.store.put(packet.id, updated)
        return updated
