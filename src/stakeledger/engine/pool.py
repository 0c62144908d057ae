"""Module C: Staking Pool - The single aggregate every operation runs through.

Each state-changing call:
1. advances the pool accumulator to now (clamped to period end),
2. settles the calling account against the advanced value,
3. applies its own effect to ledger state,
4. only then calls out to token custody.

All of it happens under one lock and inside an atomic scope that, if any step
raises, reverses transfers already made and restores the accumulator and the
touched account. A token callback that tries to start a second mutating
operation from inside a transfer gets ReentrancyError.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, Hashable, List, Optional, Tuple

from .accumulator import (
    DEFAULT_REWARDS_DURATION,
    PRECISION,
    PoolAccumulator,
    RolloverMode,
)
from .errors import (
    ClockError,
    InsufficientBalanceError,
    InsufficientFundsError,
    InvalidAmountError,
    PeriodActiveError,
    ReentrancyError,
    UnauthorizedError,
    ZeroAmountError,
)
from .ledger import StakerAccount, StakerLedger
from .tokens import Authority, Clock, SystemClock, TokenAccount

logger = logging.getLogger("stakeledger.engine.pool")


@dataclass(frozen=True)
class PoolSnapshot:
    """Point-in-time view of the pool, for display and estimation only."""
    time: int
    total_staked: int
    reward_rate: int
    reward_per_unit: int
    last_accrual_time: int
    period_end: int
    rewards_duration: int
    reward_for_duration: int
    num_accounts: int


def _require_amount(amount, account=None) -> int:
    # bool is an int subclass but never a meaningful amount
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidAmountError(amount, account=account)
    return amount


class StakingPool:
    """Proportional reward-accrual pool over one stake token and one reward token."""

    def __init__(
        self,
        stake_token: TokenAccount,
        reward_token: TokenAccount,
        authority: Authority,
        clock: Optional[Clock] = None,
        rewards_duration: int = DEFAULT_REWARDS_DURATION,
        precision: int = PRECISION,
        rollover: RolloverMode = "additive",
    ):
        """
        Initialize staking pool.

        Args:
            stake_token: Custody for the staked asset
            reward_token: Custody for the reward asset
            authority: Decides who may fund periods and change the duration
            clock: Timestamp source (defaults to the wall clock)
            rewards_duration: Seconds per funding period
            precision: Fixed-point scale of the reward-per-unit accumulator
            rollover: How unspent rewards combine with new funding
        """
        if rollover not in ("additive", "multiplicative"):
            raise ValueError(f"Unknown rollover mode: {rollover!r}")
        self.stake_token = stake_token
        self.reward_token = reward_token
        self.authority = authority
        self.clock = clock or SystemClock()
        self.rollover = rollover
        self._accumulator = PoolAccumulator(precision=precision)
        self._accumulator.set_rewards_duration(rewards_duration)
        self._ledger = StakerLedger(precision=precision)
        self._lock = threading.RLock()
        self._last_seen = 0
        self._transfers: List[Tuple[TokenAccount, str, Hashable, int]] = []
        self._running: Optional[str] = None

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def stake(self, account: Hashable, amount: int) -> None:
        """Deposit ``amount`` of the stake token for ``account``."""
        _require_amount(amount, account)
        if amount == 0:
            raise ZeroAmountError("stake", account=account)
        with self._lock, self._atomic("stake", account):
            self._update_reward(account, create=True)
            self._accumulator.total_staked += amount
            self._ledger.credit(account, amount)
            self._transfer(self.stake_token, "in", account, amount)
        logger.debug(f"Staked {amount} for {account!r}")

    def withdraw(self, account: Hashable, amount: int) -> None:
        """Return ``amount`` of staked tokens to ``account``; zero is an accrual-only no-op."""
        _require_amount(amount, account)
        with self._lock, self._atomic("withdraw", account):
            self._withdraw(account, amount)
        logger.debug(f"Withdrew {amount} for {account!r}")

    def claim_rewards(self, account: Hashable) -> int:
        """
        Pay out everything ``account`` has earned so far.

        Returns:
            Amount of reward token released (0 when nothing is owed)
        """
        with self._lock, self._atomic("claim", account):
            reward = self._claim(account)
        logger.debug(f"Paid {reward} reward to {account!r}")
        return reward

    def exit(self, account: Hashable) -> Tuple[int, int]:
        """
        Withdraw the whole balance and claim rewards in one atomic step.

        Returns:
            (withdrawn, claimed)
        """
        with self._lock, self._atomic("exit", account):
            withdrawn = self._ledger.balance_of(account)
            self._withdraw(account, withdrawn)
            claimed = self._claim(account)
        logger.debug(f"{account!r} exited with {withdrawn} stake and {claimed} reward")
        return withdrawn, claimed

    def fund_new_period(self, caller: Hashable, amount: int) -> int:
        """
        Start a new reward period funded with ``amount`` reward units.

        The reward tokens must already sit in reward custody. If a period is
        still running, its unspent remainder is rolled into the new rate.

        Args:
            caller: Identity checked against the funding authority
            amount: Newly supplied reward units

        Returns:
            The new reward rate

        Raises:
            UnauthorizedError: Caller may not fund periods
            ZeroAmountError: ``amount`` is zero
            InsufficientFundsError: Custody cannot cover ``rate * duration``
        """
        if not self.authority.is_authorized(caller):
            logger.warning(f"Rejected funding by unauthorized caller {caller!r}")
            raise UnauthorizedError(caller)
        _require_amount(amount)
        if amount == 0:
            raise ZeroAmountError("fund")
        with self._lock, self._atomic("fund"):
            now = self._now()
            acc = self._accumulator
            acc.advance(now)
            rate = acc.funded_rate(amount, now, self.rollover)

            required = rate * acc.rewards_duration
            held = self.reward_token.balance_of(self.reward_token.custody)
            if held < required:
                raise InsufficientFundsError(required, held)

            acc.start_period(rate, now)
        logger.info(
            f"Funded {amount} reward units: rate={rate}/s until {acc.period_end} "
            f"(rollover={self.rollover})"
        )
        return rate

    def set_rewards_duration(self, caller: Hashable, seconds: int) -> None:
        """Change the length of future periods; only once the current one has ended."""
        if not self.authority.is_authorized(caller):
            raise UnauthorizedError(caller, "change the rewards duration")
        with self._lock, self._atomic("set duration"):
            now = self._now()
            if now <= self._accumulator.period_end:
                raise PeriodActiveError(self._accumulator.period_end, now)
            self._accumulator.set_rewards_duration(seconds)
        logger.info(f"Rewards duration set to {seconds}s")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def reward_per_unit(self) -> int:
        """Accumulator value as of now, without mutating state."""
        with self._lock:
            return self._accumulator.reward_per_unit(self._now())

    def earned(self, account: Hashable) -> int:
        """Rewards ``account`` would receive if it claimed now."""
        with self._lock:
            rpu = self._accumulator.reward_per_unit(self._now())
            return self._ledger.earned(account, rpu)

    def balance_of(self, account: Hashable) -> int:
        with self._lock:
            return self._ledger.balance_of(account)

    def account(self, account: Hashable) -> StakerAccount:
        """Copy of the stored record for ``account``."""
        with self._lock:
            return self._ledger.get(account)

    def accounts(self) -> Dict[Hashable, StakerAccount]:
        with self._lock:
            return {key: replace(record) for key, record in self._ledger}

    @property
    def total_staked(self) -> int:
        return self._accumulator.total_staked

    @property
    def reward_rate(self) -> int:
        return self._accumulator.reward_rate

    @property
    def period_end(self) -> int:
        return self._accumulator.period_end

    @property
    def last_accrual_time(self) -> int:
        return self._accumulator.last_accrual_time

    @property
    def reward_per_unit_stored(self) -> int:
        return self._accumulator.reward_per_unit_stored

    @property
    def rewards_duration(self) -> int:
        return self._accumulator.rewards_duration

    @property
    def precision(self) -> int:
        return self._accumulator.precision

    def last_time_reward_applicable(self) -> int:
        with self._lock:
            return self._accumulator.effective_time(self._now())

    def reward_for_duration(self) -> int:
        return self._accumulator.reward_for_duration()

    def snapshot(self) -> PoolSnapshot:
        with self._lock:
            now = self._now()
            acc = self._accumulator
            return PoolSnapshot(
                time=now,
                total_staked=acc.total_staked,
                reward_rate=acc.reward_rate,
                reward_per_unit=acc.reward_per_unit(now),
                last_accrual_time=acc.last_accrual_time,
                period_end=acc.period_end,
                rewards_duration=acc.rewards_duration,
                reward_for_duration=acc.reward_for_duration(),
                num_accounts=len(self._ledger),
            )

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _now(self) -> int:
        now = self.clock.now()
        if now < self._last_seen:
            raise ClockError(now, self._last_seen)
        self._last_seen = now
        return now

    def _update_reward(self, account: Hashable, create: bool = False) -> None:
        rpu = self._accumulator.advance(self._now())
        # Unknown accounts have nothing to settle; records appear on first stake
        if create or account in self._ledger:
            self._ledger.settle(account, rpu)

    def _withdraw(self, account: Hashable, amount: int) -> None:
        available = self._ledger.balance_of(account)
        if amount > available:
            raise InsufficientBalanceError(account, amount, available)
        self._update_reward(account)
        if amount > 0:
            self._accumulator.total_staked -= amount
            self._ledger.debit(account, amount)
            self._transfer(self.stake_token, "out", account, amount)

    def _claim(self, account: Hashable) -> int:
        self._update_reward(account)
        if account not in self._ledger:
            return 0
        reward = self._ledger.take_rewards(account)
        if reward > 0:
            self._transfer(self.reward_token, "out", account, reward)
        return reward

    def _transfer(self, token: TokenAccount, direction: str, counterparty: Hashable, amount: int) -> None:
        if direction == "in":
            token.transfer_in(counterparty, amount)
        else:
            token.transfer_out(counterparty, amount)
        self._transfers.append((token, direction, counterparty, amount))

    def _reverse_transfers(self) -> None:
        # Undo completed transfers of an aborted operation, newest first
        for token, direction, counterparty, amount in reversed(self._transfers):
            if direction == "in":
                token.transfer_out(counterparty, amount)
            else:
                token.transfer_in(counterparty, amount)

    @contextmanager
    def _atomic(self, operation: str, account: Optional[Hashable] = None):
        # Same-thread callbacks get past the RLock; atomic scopes must not nest
        if self._running is not None:
            logger.warning(f"Rejected re-entrant {operation} during {self._running}")
            raise ReentrancyError(operation, self._running)
        self._running = operation
        saved_accumulator = replace(self._accumulator)
        saved_account = self._ledger.checkpoint(account) if account is not None else None
        self._transfers = []
        try:
            yield
        except Exception as exc:
            self._reverse_transfers()
            self._accumulator = saved_accumulator
            if account is not None:
                self._ledger.restore(account, saved_account)
            logger.warning(f"{operation} rejected for {account!r}: {exc}")
            raise
        finally:
            self._transfers = []
            self._running = None
