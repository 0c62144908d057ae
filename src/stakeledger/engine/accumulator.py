"""Module A: Pool Accumulator - Cumulative reward-per-unit-stake accounting.

Key Concepts:
- Rewards stream at ``reward_rate`` units per second until ``period_end``
- reward_per_unit(t) = stored + P * rate * (min(t, period_end) - last_accrual) / total_staked
- P = 10**30 fixed-point scale; 10**18 truncates per-second, per-unit rewards
  to zero for small rate/stake ratios
- Funding a new period while one is running rolls the unspent remainder
  (remaining_seconds * rate) into the new rate
"""

from dataclasses import dataclass
from typing import Literal

from .errors import InvalidAmountError

DEFAULT_PRECISION_EXPONENT = 30
PRECISION = 10 ** DEFAULT_PRECISION_EXPONENT
DEFAULT_REWARDS_DURATION = 7 * 24 * 60 * 60

RolloverMode = Literal["additive", "multiplicative"]


@dataclass
class PoolAccumulator:
    """Pool-level accrual state.

    Invariant: ``last_accrual_time <= min(now, period_end)`` between
    operations, and ``reward_per_unit_stored`` never decreases.
    """
    total_staked: int = 0
    reward_rate: int = 0  # Raw reward units per second
    reward_per_unit_stored: int = 0  # Scaled by precision
    last_accrual_time: int = 0
    period_end: int = 0
    rewards_duration: int = DEFAULT_REWARDS_DURATION
    precision: int = PRECISION

    def effective_time(self, now: int) -> int:
        """Latest timestamp rewards may accrue through: ``min(now, period_end)``."""
        return min(now, self.period_end)

    def reward_per_unit(self, now: int) -> int:
        """
        Compute the accumulator value at ``now`` without mutating state.

        Args:
            now: Current unix timestamp

        Returns:
            Cumulative reward per unit of stake, scaled by ``precision``
        """
        if self.total_staked == 0:
            return self.reward_per_unit_stored

        elapsed = self.effective_time(now) - self.last_accrual_time
        return self.reward_per_unit_stored + (
            self.precision * self.reward_rate * elapsed // self.total_staked
        )

    def advance(self, now: int) -> int:
        """
        Bring the accumulator up to ``now``.

        Commits the new reward-per-unit and moves ``last_accrual_time`` to the
        effective time, also when nothing is staked so that idle time is never
        attributed to stakers arriving later.

        Args:
            now: Current unix timestamp

        Returns:
            Updated ``reward_per_unit_stored``
        """
        self.reward_per_unit_stored = self.reward_per_unit(now)
        self.last_accrual_time = self.effective_time(now)
        return self.reward_per_unit_stored

    def funded_rate(self, amount: int, now: int, rollover: RolloverMode = "additive") -> int:
        """
        Compute the reward rate a new funding of ``amount`` would produce.

        Pure: the caller checks custody before committing via ``start_period``.

        Args:
            amount: Newly supplied reward units
            now: Current unix timestamp
            rollover: How leftover rewards of a running period combine with
                ``amount``. ``"additive"`` spreads ``amount + leftover`` over the
                new period; ``"multiplicative"`` reproduces the legacy
                ``amount * leftover`` rate.

        Returns:
            New reward rate in units per second
        """
        if now >= self.period_end:
            return amount // self.rewards_duration

        leftover = (self.period_end - now) * self.reward_rate
        if rollover == "multiplicative":
            return (amount * leftover) // self.rewards_duration
        if rollover == "additive":
            return (amount + leftover) // self.rewards_duration
        raise ValueError(f"Unknown rollover mode: {rollover!r}")

    def start_period(self, rate: int, now: int) -> None:
        """Commit a new funding period beginning at ``now``."""
        self.reward_rate = rate
        self.last_accrual_time = now
        self.period_end = now + self.rewards_duration

    def reward_for_duration(self) -> int:
        """Total rewards the current rate pays over one full period."""
        return self.reward_rate * self.rewards_duration

    def set_rewards_duration(self, seconds: int) -> None:
        """Change the funding period length (caller checks the period is over)."""
        if not isinstance(seconds, int) or seconds <= 0:
            raise InvalidAmountError(seconds)
        self.rewards_duration = seconds
