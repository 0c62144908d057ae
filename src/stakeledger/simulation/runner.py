"""Simulation runner - Drive a staking pool through a random action sequence.

Key Features:
- Manual clock advanced by random gaps between actions
- Periodic re-funding by the owner, exercising period rollover
- Ledger invariants checked after every step
- Rejected operations recorded instead of aborting the run
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..config.schema import Config
from ..engine.errors import LedgerError
from ..engine.pool import StakingPool
from ..engine.tokens import InMemoryTokenAccount, ManualClock, OwnerAuthority
from ..validation.sanity_checks import LedgerChecker, format_warnings

logger = logging.getLogger("stakeledger.simulation.runner")

ACTIONS = ("stake", "withdraw", "claim", "exit", "idle")
FRACTION_SCALE = 10 ** 6


def stake_size(free: int, fraction: int, max_stake_fraction: float) -> int:
    """
    Amount to stake out of ``free`` tokens, in integer arithmetic.

    Args:
        free: Account's unstaked token balance
        fraction: Draw in [1, FRACTION_SCALE]
        max_stake_fraction: Cap on the share staked in one action

    Returns:
        ``free * fraction * max_stake_fraction / FRACTION_SCALE``, floored
    """
    cap = int(round(max_stake_fraction * FRACTION_SCALE))
    return free * fraction * cap // (FRACTION_SCALE * FRACTION_SCALE)


@dataclass
class PoolState:
    """Pool state after a simulated step."""
    t: int  # Seconds since simulation start
    total_staked: int
    reward_rate: int
    reward_per_unit: int
    period_end: int
    funded_cumulative: int
    claimed_cumulative: int
    unclaimed: int  # Earned but not yet claimed, across all accounts


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: Config
    states: List[PoolState]
    events: List[Dict[str, Any]]
    final_metrics: Dict[str, Any]
    invariant_errors: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


class SimulationRunner:
    """Random-action simulator over a single staking pool."""

    def __init__(self, config: Config):
        """
        Initialize simulation runner.

        Args:
            config: Simulation configuration
        """
        self.config = config
        self.accounts = [f"account-{i}" for i in range(config.simulation.num_accounts)]

    def build_pool(self) -> StakingPool:
        """Create a fresh pool with minted stake balances and a manual clock."""
        pool_cfg = self.config.pool
        stake_token = InMemoryTokenAccount("STAKE")
        reward_token = InMemoryTokenAccount("REWARD")
        for account in self.accounts:
            stake_token.mint(account, self.config.simulation.initial_stake_balance)
        return StakingPool(
            stake_token=stake_token,
            reward_token=reward_token,
            authority=OwnerAuthority(pool_cfg.owner),
            clock=ManualClock(start=0),
            rewards_duration=pool_cfg.rewards_duration_seconds,
            precision=pool_cfg.precision,
            rollover=pool_cfg.rollover_mode,
        )

    def run(self, random_seed: Optional[int] = None) -> SimulationResult:
        """
        Run the simulation.

        Args:
            random_seed: Random seed (defaults to config value)

        Returns:
            SimulationResult with per-step states and final metrics
        """
        sim = self.config.simulation
        if random_seed is None:
            random_seed = sim.random_seed
        rng = np.random.default_rng(random_seed)

        pool = self.build_pool()
        clock: ManualClock = pool.clock
        checker = LedgerChecker(self.config)

        weights = np.array([sim.actions.as_dict()[name] for name in ACTIONS], dtype=float)
        probabilities = weights / weights.sum()

        states: List[PoolState] = []
        events: List[Dict[str, Any]] = []
        invariant_errors: List[str] = []
        rejected: List[str] = []
        claimed_by_account = {account: 0 for account in self.accounts}
        totals = {"funded": 0, "claimed": 0, "fundings": 0}
        next_funding = 0

        for step in range(sim.steps):
            if step > 0:
                clock.advance(int(rng.integers(sim.min_step_seconds, sim.max_step_seconds + 1)))

            if totals["fundings"] < sim.fundings and clock.now() >= next_funding:
                ok = self._fund(pool, totals, events, rejected)
                if ok:
                    next_funding = clock.now() + sim.funding_interval_seconds

            account = self.accounts[int(rng.integers(len(self.accounts)))]
            action = ACTIONS[int(rng.choice(len(ACTIONS), p=probabilities))]
            fraction = int(rng.integers(1, FRACTION_SCALE + 1))
            self._act(pool, account, action, fraction, totals, claimed_by_account, events, rejected)

            violations = checker.check_pool_state(pool, totals["funded"], totals["claimed"])
            if violations:
                for line in format_warnings(violations):
                    invariant_errors.append(f"step {step}: {line}")
                    logger.error(f"step {step}: {line}")

            states.append(self._state(pool, totals))

        final_metrics = self._final_metrics(pool, totals, claimed_by_account, states)
        return SimulationResult(
            config=self.config,
            states=states,
            events=events,
            final_metrics=final_metrics,
            invariant_errors=invariant_errors,
            rejected=rejected,
        )

    def _fund(self, pool: StakingPool, totals: dict, events: list, rejected: list) -> bool:
        owner = self.config.pool.owner
        amount = self.config.simulation.funding_amount
        pool.reward_token.mint(owner, amount)
        pool.reward_token.transfer_in(owner, amount)
        try:
            rate = pool.fund_new_period(owner, amount)
        except LedgerError as exc:
            # Tokens stay in custody and back later fundings
            rejected.append(f"t={pool.clock.now()} fund: {exc}")
            events.append(self._event(pool, owner, "fund", amount, ok=False))
            return False
        totals["funded"] += amount
        totals["fundings"] += 1
        events.append(self._event(pool, owner, "fund", amount, ok=True, rate=rate))
        return True

    def _act(
        self,
        pool: StakingPool,
        account: str,
        action: str,
        fraction: int,
        totals: dict,
        claimed_by_account: dict,
        events: list,
        rejected: list
    ) -> None:
        amount = 0
        try:
            if action == "stake":
                free = pool.stake_token.balance_of(account)
                amount = stake_size(free, fraction, self.config.simulation.max_stake_fraction)
                if amount == 0:
                    return
                pool.stake(account, amount)
            elif action == "withdraw":
                amount = pool.balance_of(account) * fraction // FRACTION_SCALE
                pool.withdraw(account, amount)
            elif action == "claim":
                amount = pool.claim_rewards(account)
                totals["claimed"] += amount
                claimed_by_account[account] += amount
            elif action == "exit":
                withdrawn, claimed = pool.exit(account)
                amount = withdrawn
                totals["claimed"] += claimed
                claimed_by_account[account] += claimed
            else:
                return
        except LedgerError as exc:
            rejected.append(f"t={pool.clock.now()} {action} {account}: {exc}")
            events.append(self._event(pool, account, action, amount, ok=False))
            return
        events.append(self._event(pool, account, action, amount, ok=True))

    @staticmethod
    def _event(pool: StakingPool, account: str, action: str, amount: int, ok: bool, **extra) -> dict:
        event = {'t': pool.clock.now(), 'account': account, 'action': action, 'amount': amount, 'ok': ok}
        event.update(extra)
        return event

    @staticmethod
    def _state(pool: StakingPool, totals: dict) -> PoolState:
        snapshot = pool.snapshot()
        unclaimed = sum(pool.earned(account) for account in pool.accounts())
        return PoolState(
            t=snapshot.time,
            total_staked=snapshot.total_staked,
            reward_rate=snapshot.reward_rate,
            reward_per_unit=snapshot.reward_per_unit,
            period_end=snapshot.period_end,
            funded_cumulative=totals["funded"],
            claimed_cumulative=totals["claimed"],
            unclaimed=unclaimed,
        )

    @staticmethod
    def _final_metrics(
        pool: StakingPool,
        totals: dict,
        claimed_by_account: dict,
        states: List[PoolState]
    ) -> Dict[str, Any]:
        final = states[-1]
        distributed = final.claimed_cumulative + final.unclaimed
        funded = totals["funded"]
        return {
            'final_time': final.t,
            'fundings': totals["fundings"],
            'funded_total': funded,
            'claimed_total': final.claimed_cumulative,
            'unclaimed_total': final.unclaimed,
            'distributed_total': distributed,
            # Funds idle while nothing was staked, still scheduled, or lost to rounding
            'undistributed_total': funded - distributed,
            'distribution_ratio': distributed / funded if funded > 0 else 0.0,
            'final_total_staked': final.total_staked,
            'final_reward_rate': final.reward_rate,
            'claimed_by_account': dict(claimed_by_account),
            'num_accounts_touched': len(pool.accounts()),
        }
