import threading
from typing import Protocol

from .models import BlockNumber


class Clock(Protocol):
    def now(self) -> BlockNumber: ...


class BlockClock:
    """Manually driven block height. Never moves backwards."""

    def __init__(self, start: BlockNumber = 0):
        self._block = start
        self._lock = threading.Lock()

    def now(self) -> BlockNumber:
        return self._block

    def set_block_number(self, block: BlockNumber) -> None:
        with self._lock:
            if block < self._block:
                raise ValueError(f"Block height cannot go back from {self._block} to {block}")
            self._block = block

    def advance(self, blocks: int = 1) -> BlockNumber:
        if blocks < 0:
            raise ValueError("Cannot advance by a negative number of blocks")
        with self._lock:
            self._block += blocks
            return self._block
