"""Reward accumulator, staker ledger and the pool that composes them."""

from .accumulator import DEFAULT_REWARDS_DURATION, PRECISION, PoolAccumulator
from .errors import (
    ClockError,
    InsufficientBalanceError,
    InsufficientFundsError,
    InvalidAmountError,
    LedgerError,
    PeriodActiveError,
    ReentrancyError,
    TransferError,
    UnauthorizedError,
    ZeroAmountError,
)
from .ledger import StakerAccount, StakerLedger
from .pool import PoolSnapshot, StakingPool
from .tokens import (
    Authority,
    Clock,
    InMemoryTokenAccount,
    ManualClock,
    OwnerAuthority,
    SystemClock,
    TokenAccount,
)
