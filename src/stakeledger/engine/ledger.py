"""Module B: Staker Ledger - Lazy per-account reward settlement.

Each account stores only its balance, the accumulator value it was last
settled against, and rewards already settled but not yet paid out:

    earned = settled_rewards + balance * (reward_per_unit - reward_per_unit_paid) / P
"""

from dataclasses import dataclass, replace
from typing import Dict, Hashable, Iterator, Optional, Tuple

from .accumulator import PRECISION
from .errors import InsufficientBalanceError


@dataclass
class StakerAccount:
    """Per-account checkpoint record."""
    balance: int = 0
    reward_per_unit_paid: int = 0  # Accumulator value at last settlement
    settled_rewards: int = 0  # Owed, not yet paid out


class StakerLedger:
    """Keyed table of staker accounts.

    Records are created on first mutation and never removed; reads of an
    unknown account see an all-zero record without inserting one.
    """

    def __init__(self, precision: int = PRECISION):
        self.precision = precision
        self._accounts: Dict[Hashable, StakerAccount] = {}

    def __contains__(self, account: Hashable) -> bool:
        return account in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Tuple[Hashable, StakerAccount]]:
        return iter(self._accounts.items())

    def get(self, account: Hashable) -> StakerAccount:
        """Return a copy of the account record (zeros if unknown)."""
        record = self._accounts.get(account)
        return replace(record) if record is not None else StakerAccount()

    def balance_of(self, account: Hashable) -> int:
        record = self._accounts.get(account)
        return record.balance if record is not None else 0

    def earned(self, account: Hashable, reward_per_unit: int) -> int:
        """
        Rewards owed to ``account`` if settled against ``reward_per_unit``.

        Args:
            account: Account identity
            reward_per_unit: Current accumulator value

        Returns:
            Settled plus newly accrued rewards, in reward units
        """
        record = self._accounts.get(account)
        if record is None:
            return 0
        delta = reward_per_unit - record.reward_per_unit_paid
        return record.settled_rewards + record.balance * delta // self.precision

    def settle(self, account: Hashable, reward_per_unit: int) -> StakerAccount:
        """Fold accrued rewards into ``settled_rewards`` and move the checkpoint."""
        record = self._record(account)
        record.settled_rewards = self.earned(account, reward_per_unit)
        record.reward_per_unit_paid = reward_per_unit
        return record

    def credit(self, account: Hashable, amount: int) -> None:
        self._record(account).balance += amount

    def debit(self, account: Hashable, amount: int) -> None:
        record = self._record(account)
        if amount > record.balance:
            raise InsufficientBalanceError(account, amount, record.balance)
        record.balance -= amount

    def take_rewards(self, account: Hashable) -> int:
        """Zero the account's settled rewards and return what was owed."""
        record = self._record(account)
        reward = record.settled_rewards
        record.settled_rewards = 0
        return reward

    def checkpoint(self, account: Hashable) -> Optional[StakerAccount]:
        """Copy of the stored record, or ``None`` if the account is unknown."""
        record = self._accounts.get(account)
        return replace(record) if record is not None else None

    def restore(self, account: Hashable, saved: Optional[StakerAccount]) -> None:
        """Put back a record captured with ``checkpoint``."""
        if saved is None:
            self._accounts.pop(account, None)
        else:
            self._accounts[account] = saved

    def total_balance(self) -> int:
        return sum(record.balance for record in self._accounts.values())

    def _record(self, account: Hashable) -> StakerAccount:
        record = self._accounts.get(account)
        if record is None:
            record = self._accounts[account] = StakerAccount()
        return record
