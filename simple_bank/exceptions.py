"""Ledger domain specific exceptions."""

from decimal import Decimal


class LedgerError(ValueError):
    """Base class for ledger domain errors."""


class InvalidAmountError(LedgerError):
    """Raised when an amount is missing, not a number, zero or negative."""

    def __init__(self, amount=None):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount!r}")


class AccountNotFoundError(LedgerError):
    """Raised when the requested account cannot be found."""

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class InsufficientFundsError(LedgerError):
    """Raised when a debit would take an account balance below zero."""

    def __init__(self, account_id: int, balance: Decimal, amount: Decimal):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Insufficient funds in account {account_id}: "
            f"balance {balance}, requested {amount}"
        )
