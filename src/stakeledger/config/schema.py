"""Pydantic schema for configuration validation."""

import hashlib
import json
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class PoolSettings(BaseModel):
    """Staking pool parameters."""
    rewards_duration_seconds: int = Field(
        gt=0, default=604_800, description="Length of a funding period in seconds"
    )
    precision_exponent: int = Field(
        ge=18, le=36, default=30,
        description="Fixed-point exponent of the reward-per-unit accumulator (scale = 10**exp)"
    )
    rollover_mode: Literal["additive", "multiplicative"] = Field(
        default="additive",
        description="How unspent rewards of a running period combine with new funding"
    )
    owner: str = Field(default="owner", min_length=1, description="Funding authority identity")

    @property
    def precision(self) -> int:
        return 10 ** self.precision_exponent


class ActionWeights(BaseModel):
    """Relative likelihood of each simulated account action."""
    stake: float = Field(ge=0, default=0.45)
    withdraw: float = Field(ge=0, default=0.25)
    claim: float = Field(ge=0, default=0.2)
    exit: float = Field(ge=0, default=0.05)
    idle: float = Field(ge=0, default=0.05)

    @model_validator(mode='after')
    def validate_total(self):
        """At least one action must be possible."""
        if self.stake + self.withdraw + self.claim + self.exit + self.idle <= 0:
            raise ValueError("Action weights must not all be zero")
        return self

    def as_dict(self) -> Dict[str, float]:
        return self.model_dump()


class Simulation(BaseModel):
    """Simulation parameters."""
    num_accounts: int = Field(gt=0, default=8, description="Number of simulated stakers")
    steps: int = Field(gt=0, default=500, description="Number of simulated actions")
    min_step_seconds: int = Field(ge=0, default=0, description="Shortest gap between actions")
    max_step_seconds: int = Field(gt=0, default=6 * 3600, description="Longest gap between actions")
    initial_stake_balance: int = Field(
        gt=0, default=1_000 * 10 ** 18, description="Stake tokens minted to each account"
    )
    max_stake_fraction: float = Field(
        gt=0, le=1, default=0.5,
        description="Largest share of an account's free stake tokens staked in one action"
    )
    funding_amount: int = Field(gt=0, default=20 * 10 ** 18, description="Reward units per funding")
    funding_interval_seconds: int = Field(
        gt=0, default=432_000, description="Time between re-fundings; shorter than a period exercises rollover"
    )
    fundings: int = Field(ge=1, default=4, description="Maximum number of fundings in a run")
    actions: ActionWeights = Field(default_factory=ActionWeights)
    random_seed: int = Field(default=42, description="Random seed for reproducibility")
    monte_carlo_runs: int = Field(gt=0, default=20, description="Number of Monte Carlo runs")

    @field_validator('max_step_seconds')
    @classmethod
    def validate_step_bounds(cls, v, info):
        """Ensure min <= max step length."""
        if 'min_step_seconds' in info.data and v < info.data['min_step_seconds']:
            raise ValueError("max_step_seconds must be at least min_step_seconds")
        return v


class Config(BaseModel):
    """Complete configuration for the staking ledger."""
    pool: PoolSettings = Field(default_factory=PoolSettings)
    simulation: Simulation = Field(default_factory=Simulation)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**(data or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
