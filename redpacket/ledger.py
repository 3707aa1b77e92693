"""
Account ledger collaborator.

The lifecycle engine only calls the four primitives of ``LedgerAdapter``;
``InMemoryLedger`` is the reference implementation used by the tests and
the demo HTTP API.
"""

import logging
import threading
from collections import defaultdict
from typing import Optional, Protocol

from .balance import saturating_add
from .config import DEFAULT_MAX_BALANCE
from .errors import InsufficientBalanceError
from .models import AccountId, Balance

logger = logging.getLogger(__name__)


class LedgerAdapter(Protocol):
    def reserve(self, account: AccountId, amount: Balance) -> None: ...

    def unreserve(self, account: AccountId, amount: Balance) -> Balance: ...

    def transfer(self, source: AccountId, dest: AccountId, amount: Balance) -> None: ...

    def transfer_reserved(self, source: AccountId, dest: AccountId, amount: Balance) -> None: ...

    def balance_of(self, account: AccountId) -> Balance: ...


class InMemoryLedger:
    """Free and reserved balances per account, each call atomic under one lock."""

    def __init__(
        self,
        genesis: Optional[dict[AccountId, Balance]] = None,
        max_balance: int = DEFAULT_MAX_BALANCE,
    ):
        self.max_balance = max_balance
        self.free: dict[AccountId, Balance] = defaultdict(int)
        self.reserved: dict[AccountId, Balance] = defaultdict(int)
        self._lock = threading.Lock()
        for account, amount in (genesis or {}).items():
            self.deposit(account, amount)

    def deposit(self, account: AccountId, amount: Balance) -> None:
        if amount < 0:
            raise ValueError("Deposit amount must be non-negative")
        with self._lock:
            self.free[account] = saturating_add(self.free[account], amount, self.max_balance)

    def reserve(self, account: AccountId, amount: Balance) -> None:
        with self._lock:
            if self.free[account] < amount:
                raise InsufficientBalanceError(
                    f"Account {account} cannot reserve {amount}: free balance is {self.free[account]}"
                )
            self.free[account] -= amount
            self.reserved[account] += amount
        logger.debug("Reserved %s for %s", amount, account)

    def unreserve(self, account: AccountId, amount: Balance) -> Balance:
        """Move up to ``amount`` from reserved to free; returns what was actually moved."""
        with self._lock:
            moved = min(amount, self.reserved[account])
            self.reserved[account] -= moved
            self.free[account] += moved
        logger.debug("Unreserved %s for %s", moved, account)
        return moved

    def transfer(self, source: AccountId, dest: AccountId, amount: Balance) -> None:
        with self._lock:
            if self.free[source] < amount:
                raise InsufficientBalanceError(
                    f"Account {source} cannot transfer {amount}: free balance is {self.free[source]}"
                )
            self.free[source] -= amount
            self.free[dest] = saturating_add(self.free[dest], amount, self.max_balance)
        logger.debug("Transferred %s from %s to %s", amount, source, dest)

    def transfer_reserved(self, source: AccountId, dest: AccountId, amount: Balance) -> None:
        """Pay ``amount`` out of ``source``'s reserve into ``dest``'s free balance in one step."""
        with self._lock:
            if self.reserved[source] < amount:
                raise InsufficientBalanceError(
                    f"Account {source} cannot pay {amount} from reserve: reserved balance is {self.reserved[source]}"
                )
            self.reserved[source] -= amount
            self.free[dest] = saturating_add(self.free[dest], amount, self.max_balance)
        logger.debug("Paid %s from reserve of %s to %s", amount, source, dest)

    def balance_of(self, account: AccountId) -> Balance:
        with self._lock:
            return self.free.get(account, 0)

    def reserved_of(self, account: AccountId) -> Balance:
        with self._lock:
            return self.reserved.get(account, 0)
