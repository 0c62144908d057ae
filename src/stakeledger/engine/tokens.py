"""Token custody, funding authority and clock capabilities consumed by the pool."""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Hashable

from .errors import ClockError, InvalidAmountError, TransferError


class TokenAccount(ABC):
    """Custody of one asset on behalf of the pool.

    ``custody`` is the holder id under which the pool's tokens are kept, so
    ``balance_of(custody)`` is what the pool currently holds.
    """

    custody: Hashable

    @abstractmethod
    def transfer_in(self, sender: Hashable, amount: int) -> None:
        """Move ``amount`` from ``sender`` into custody."""

    @abstractmethod
    def transfer_out(self, recipient: Hashable, amount: int) -> None:
        """Release ``amount`` from custody to ``recipient``."""

    @abstractmethod
    def balance_of(self, holder: Hashable) -> int:
        """Current balance of ``holder``."""


class InMemoryTokenAccount(TokenAccount):
    """Dictionary-backed token used by the simulator and tests."""

    def __init__(self, symbol: str, custody: Hashable = "pool"):
        self.symbol = symbol
        self.custody = custody
        self._balances: Dict[Hashable, int] = {}

    def mint(self, holder: Hashable, amount: int) -> None:
        """Create ``amount`` new tokens for ``holder``."""
        if not isinstance(amount, int) or amount < 0:
            raise InvalidAmountError(amount, account=holder)
        self._balances[holder] = self._balances.get(holder, 0) + amount

    def transfer_in(self, sender: Hashable, amount: int) -> None:
        self._move(sender, self.custody, amount)

    def transfer_out(self, recipient: Hashable, amount: int) -> None:
        self._move(self.custody, recipient, amount)

    def balance_of(self, holder: Hashable) -> int:
        return self._balances.get(holder, 0)

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    def _move(self, source: Hashable, target: Hashable, amount: int) -> None:
        available = self._balances.get(source, 0)
        if amount > available:
            raise TransferError(self.symbol, source, amount, available)
        self._balances[source] = available - amount
        self._balances[target] = self._balances.get(target, 0) + amount


class Authority(ABC):
    """Decides who may fund reward periods."""

    @abstractmethod
    def is_authorized(self, caller: Any) -> bool:
        ...


class OwnerAuthority(Authority):
    """Single-owner authority."""

    def __init__(self, owner: Any):
        self.owner = owner

    def is_authorized(self, caller: Any) -> bool:
        return caller == self.owner


class Clock(ABC):
    """Source of unix timestamps in whole seconds; must never go backwards."""

    @abstractmethod
    def now(self) -> int:
        ...


class SystemClock(Clock):
    """Wall clock clamped to be non-decreasing within the process."""

    def __init__(self):
        self._last = 0

    def now(self) -> int:
        current = int(time.time())
        # NTP adjustments can step the wall clock back
        self._last = max(self._last, current)
        return self._last


class ManualClock(Clock):
    """Clock advanced explicitly, for simulation and tests."""

    def __init__(self, start: int = 0):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move forward by ``seconds`` and return the new time."""
        if seconds < 0:
            raise ClockError(self._now + seconds, self._now)
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ClockError(timestamp, self._now)
        self._now = int(timestamp)
