"""Ledger error hierarchy.

Every error aborts the operation that raised it; the pool restores its state
before the exception propagates, so callers never observe a partial effect.
"""

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all staking ledger failures."""

    def __init__(self, message: str, account: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.account = account


class ZeroAmountError(LedgerError):
    """A strictly positive amount was required but zero was given."""

    def __init__(self, operation: str, account: Optional[Any] = None):
        super().__init__(f"Cannot {operation} 0", account=account)
        self.operation = operation


class InvalidAmountError(LedgerError, ValueError):
    """Amount is negative or not an integer."""

    def __init__(self, amount: Any, account: Optional[Any] = None):
        super().__init__(
            f"Amount must be a non-negative integer, got {amount!r}",
            account=account,
        )
        self.amount = amount


class InsufficientBalanceError(LedgerError):
    """Withdrawal exceeds the account's staked balance."""

    def __init__(self, account: Any, requested: int, available: int):
        super().__init__(
            f"Withdrawal of {requested} exceeds staked balance {available} for {account!r}",
            account=account,
        )
        self.requested = requested
        self.available = available


class InsufficientFundsError(LedgerError):
    """Funding would commit more rewards than custody holds."""

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Provided reward too high: period needs {required}, custody holds {available}"
        )
        self.required = required
        self.available = available


class UnauthorizedError(LedgerError):
    """Caller lacks the funding authority."""

    def __init__(self, caller: Any, operation: str = "fund a reward period"):
        super().__init__(f"{caller!r} is not authorized to {operation}", account=caller)
        self.operation = operation


class PeriodActiveError(LedgerError):
    """Operation requires the current reward period to have finished."""

    def __init__(self, period_end: int, now: int):
        super().__init__(
            f"Reward period still active until {period_end} (now {now})"
        )
        self.period_end = period_end
        self.now = now


class TransferError(LedgerError):
    """Token custody refused a transfer."""

    def __init__(self, symbol: str, holder: Any, requested: int, available: int):
        super().__init__(
            f"{symbol}: transfer of {requested} from {holder!r} exceeds balance {available}",
            account=holder,
        )
        self.symbol = symbol
        self.requested = requested
        self.available = available


class ClockError(LedgerError):
    """Clock moved backwards."""

    def __init__(self, now: int, last_seen: int):
        super().__init__(f"Clock went backwards: {now} < {last_seen}")
        self.now = now
        self.last_seen = last_seen


class ReentrancyError(LedgerError):
    """A state-changing call was made while another one was still running."""

    def __init__(self, operation: str, running: str):
        super().__init__(f"Cannot {operation} while {running} is in progress")
        self.operation = operation
        self.running = running
