import pytest

from redpacket.clock import BlockClock
from redpacket.ledger import InMemoryLedger
from redpacket.service import RedPacketService


GENESIS = {1: 100, 2: 200, 3: 300, 4: 400, 5: 1}


@pytest.fixture
def clock():
    return BlockClock()


@pytest.fixture
def ledger():
    return InMemoryLedger(dict(GENESIS))


@pytest.fixture
def service(ledger, clock):
    return RedPacketService(ledger=ledger, clock=clock)
