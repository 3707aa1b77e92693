"""
Unit Tests for the packet store, ledger and block clock collaborators
"""

import pytest

from redpacket.clock import BlockClock
from redpacket.errors import InsufficientBalanceError
from redpacket.ledger import InMemoryLedger
from redpacket.models import Packet
from redpacket.store import InMemoryPacketStore


def make_packet(packet_id, owner="alice", **overrides):
    data = dict(
        id=packet_id, owner=owner, total=10, unclaimed=10, count=2,
        claims_made=0, created_at=0, expires_at=5,
    )
    data.update(overrides)
    return Packet(**data)


class TestPacketStore:
    """Tests for packet and claim records."""

    def test_next_id_advances(self):
        store = InMemoryPacketStore()

        assert [store.next_id() for _ in range(3)] == [0, 1, 2]
        assert store.peek_next_id() == 3

    def test_get_missing_returns_none(self):
        assert InMemoryPacketStore().get(9) is None

    def test_put_returns_copies(self):
        store = InMemoryPacketStore()
        store.put(0, make_packet(0))

        fetched = store.get(0)
        fetched.unclaimed = 0

        assert store.get(0).unclaimed == 10

    def test_claims_recorded_once(self):
        store = InMemoryPacketStore()
        store.put(0, make_packet(0))
        store.add_claim(0, "bob", 5, 3)

        assert store.claims_of(0) == {"bob"}
        assert store.claim_records(0)[0].amount == 5
        assert store.claim_records(0)[0].claimed_at == 3
        with pytest.raises(KeyError):
            store.add_claim(0, "bob", 5, 4)

    def test_list_packets_by_owner(self):
        store = InMemoryPacketStore()
        store.put(1, make_packet(1, owner="bob"))
        store.put(0, make_packet(0))
        store.put(2, make_packet(2))

        assert [p.id for p in store.list_packets()] == [0, 1, 2]
        assert [p.id for p in store.list_packets("alice")] == [0, 2]


class TestPacketPredicates:
    """Derived lifecycle predicates on the packet record."""

    def test_expiry_is_inclusive(self):
        packet = make_packet(0, expires_at=5)

        assert not packet.is_expired(4)
        assert packet.is_expired(5)

    def test_exhausted_by_count_or_funds(self):
        assert make_packet(0, claims_made=2, unclaimed=0).is_exhausted()
        assert make_packet(0, claims_made=1, unclaimed=0).is_exhausted()
        assert not make_packet(0, claims_made=1, unclaimed=5).is_exhausted()

    def test_distributed_packet_cannot_distribute_again(self):
        packet = make_packet(0, distributed=True)

        assert not packet.can_distribute(100)


class TestInMemoryLedger:
    """Tests for the reference ledger."""

    def test_reserve_and_unreserve(self):
        ledger = InMemoryLedger({"alice": 100})

        ledger.reserve("alice", 40)
        assert (ledger.balance_of("alice"), ledger.reserved_of("alice")) == (60, 40)

        assert ledger.unreserve("alice", 50) == 40
        assert (ledger.balance_of("alice"), ledger.reserved_of("alice")) == (100, 0)

    def test_reserve_more_than_free_fails(self):
        ledger = InMemoryLedger({"alice": 10})

        with pytest.raises(InsufficientBalanceError):
            ledger.reserve("alice", 11)
        assert ledger.balance_of("alice") == 10

    def test_transfer(self):
        ledger = InMemoryLedger({"alice": 10})

        ledger.transfer("alice", "bob", 4)
        assert ledger.balance_of("alice") == 6
        assert ledger.balance_of("bob") == 4

        with pytest.raises(InsufficientBalanceError):
            ledger.transfer("bob", "alice", 5)

    def test_transfer_reserved_leaves_free_balance_alone(self):
        ledger = InMemoryLedger({"alice": 100})
        ledger.reserve("alice", 30)

        ledger.transfer_reserved("alice", "bob", 20)
        assert (ledger.balance_of("alice"), ledger.reserved_of("alice")) == (70, 10)
        assert ledger.balance_of("bob") == 20

        with pytest.raises(InsufficientBalanceError):
            ledger.transfer_reserved("alice", "bob", 11)
        assert (ledger.balance_of("alice"), ledger.reserved_of("alice")) == (70, 10)

    def test_deposit_saturates(self):
        ledger = InMemoryLedger(max_balance=15)
        ledger.deposit("alice", 10)
        ledger.deposit("alice", 10)

        assert ledger.balance_of("alice") == 15


class TestBlockClock:
    def test_advance_and_set(self):
        clock = BlockClock()

        assert clock.advance() == 1
        assert clock.advance(4) == 5
        clock.set_block_number(9)
        assert clock.now() == 9

    def test_never_goes_backwards(self):
        clock = BlockClock(10)

        with pytest.raises(ValueError):
            clock.set_block_number(3)
        with pytest.raises(ValueError):
            clock.advance(-1)
