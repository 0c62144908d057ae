"""Proportional reward-accrual staking ledger."""

from .engine import (
    ClockError,
    InMemoryTokenAccount,
    InsufficientBalanceError,
    InsufficientFundsError,
    InvalidAmountError,
    LedgerError,
    ManualClock,
    OwnerAuthority,
    PeriodActiveError,
    ReentrancyError,
    PoolSnapshot,
    StakingPool,
    SystemClock,
    TransferError,
    UnauthorizedError,
    ZeroAmountError,
)

__version__ = "0.1.0"
