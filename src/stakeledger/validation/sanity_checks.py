"""Sanity checks for ledger configuration and live pool state."""

from dataclasses import dataclass
from typing import List, Optional

from ..config.schema import Config
from ..engine.pool import StakingPool


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "conservation", "bounds"
    message: str
    details: Optional[str] = None


class LedgerChecker:
    """Run sanity checks on configuration and pool invariants."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config
        self._last_reward_per_unit = 0

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        pool = self.config.pool
        sim = self.config.simulation

        # Per-second reward must survive the fixed-point division
        rate = sim.funding_amount // pool.rewards_duration_seconds
        if rate == 0:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message="Funding amount is smaller than the period length; reward rate rounds to 0",
                details=f"{sim.funding_amount} units over {pool.rewards_duration_seconds}s"
            ))
        else:
            max_staked = sim.num_accounts * sim.initial_stake_balance
            per_unit = pool.precision * rate // max_staked
            if per_unit == 0:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="precision",
                    message="Per-second reward per staked unit truncates to zero at full stake",
                    details=f"precision=1e{pool.precision_exponent}, rate={rate}, max staked={max_staked}"
                ))

        if pool.precision_exponent < 30:
            warnings.append(ValidationWarning(
                severity="warning",
                category="precision",
                message="Accumulator precision below 1e30 loses rewards for small rate/stake ratios",
                details=f"Current value: 1e{pool.precision_exponent}"
            ))

        if pool.rollover_mode == "multiplicative":
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Multiplicative rollover scales the new rate by leftover rewards",
                details="Re-funding a running period will usually fail the custody check"
            ))

        if sim.max_step_seconds > pool.rewards_duration_seconds:
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="A single simulated step can span a whole reward period",
                details=f"max_step_seconds={sim.max_step_seconds}"
            ))

        return warnings

    def check_pool_state(
        self,
        pool: StakingPool,
        funded_total: int,
        claimed_total: int
    ) -> List[ValidationWarning]:
        """
        Check ledger invariants against the live pool.

        Args:
            pool: Pool to inspect
            funded_total: Reward units supplied across all successful fundings
            claimed_total: Reward units paid out so far

        Returns:
            List of violations (empty when all invariants hold)
        """
        warnings = []
        accounts = pool.accounts()
        snapshot = pool.snapshot()

        balance_sum = sum(record.balance for record in accounts.values())
        if balance_sum != snapshot.total_staked:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message=f"Total staked {snapshot.total_staked} != sum of balances {balance_sum}",
            ))

        custody = pool.stake_token.balance_of(pool.stake_token.custody)
        if custody != snapshot.total_staked:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message=f"Stake custody {custody} != total staked {snapshot.total_staked}",
            ))

        if snapshot.reward_per_unit < self._last_reward_per_unit:
            warnings.append(ValidationWarning(
                severity="error",
                category="monotonicity",
                message="Reward-per-unit accumulator decreased",
                details=f"{self._last_reward_per_unit} -> {snapshot.reward_per_unit}"
            ))
        self._last_reward_per_unit = snapshot.reward_per_unit

        if snapshot.last_accrual_time > min(snapshot.time, snapshot.period_end):
            warnings.append(ValidationWarning(
                severity="error",
                category="time",
                message="Accumulator advanced past min(now, period_end)",
                details=f"last={snapshot.last_accrual_time}, now={snapshot.time}, end={snapshot.period_end}"
            ))

        owed = sum(pool.earned(account) for account in accounts)
        if claimed_total + owed > funded_total:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message="Rewards paid plus owed exceed rewards funded",
                details=f"claimed={claimed_total}, owed={owed}, funded={funded_total}"
            ))

        held = pool.reward_token.balance_of(pool.reward_token.custody)
        if owed > held:
            warnings.append(ValidationWarning(
                severity="error",
                category="solvency",
                message=f"Reward custody {held} cannot cover owed rewards {owed}",
            ))

        return warnings


def format_warnings(warnings: List[ValidationWarning]) -> List[str]:
    """Render warnings as single-line strings."""
    lines = []
    for w in warnings:
        line = f"[{w.severity.upper()}] {w.category}: {w.message}"
        if w.details:
            line += f" ({w.details})"
        lines.append(line)
    return lines
