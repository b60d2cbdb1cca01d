"""
Account Records Module

Accounts, their transaction history, and conversion to and from the stored
ledger document. All monetary values are Decimal and are stored as strings.
"""

from decimal import Decimal, Inexact, Overflow, localcontext
from datetime import datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from enum import Enum


def exact_sum(balance: Decimal, delta: Decimal) -> Decimal:
    """
    Add delta to balance without rounding.

    Raises:
        decimal.Inexact: the result does not fit the context precision
        decimal.Overflow: the result exceeds the context exponent range
    """
    with localcontext() as ctx:
        ctx.traps[Inexact] = True
        ctx.traps[Overflow] = True
        return balance + delta


class TransactionType(Enum):
    """Balance-affecting events recorded on an account"""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER_OUT = "transfer_out"    # Debit side of a transfer, records "to"
    TRANSFER_IN = "transfer_in"      # Credit side of a transfer, records "from"

    @property
    def is_transfer(self) -> bool:
        return self in (TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN)

    @property
    def counterparty_key(self) -> Optional[str]:
        """Document key holding the counterparty name"""
        if self == TransactionType.TRANSFER_OUT:
            return "to"
        if self == TransactionType.TRANSFER_IN:
            return "from"
        return None


@dataclass(frozen=True)
class Transaction:
    """
    Immutable record of a single balance-affecting event.
    Transfers carry the other account's display name as counterparty.
    """
    type: TransactionType
    amount: Decimal
    date: datetime
    counterparty: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount <= 0:
            raise ValueError("Transaction amount must be positive")

        if self.type.is_transfer and self.counterparty is None:
            raise ValueError(f"{self.type.value} transaction requires a counterparty")
        if not self.type.is_transfer and self.counterparty is not None:
            raise ValueError(f"{self.type.value} transaction cannot have a counterparty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored document layout"""
        result = {
            "type": self.type.value,
            "amount": str(self.amount),
        }
        if self.type.counterparty_key:
            result[self.type.counterparty_key] = self.counterparty
        result["date"] = self.date.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from the stored document layout"""
        txn_type = TransactionType(data["type"])
        date = data["date"]
        if isinstance(date, str):
            # Older documents carry JavaScript style "Z" suffixes
            date = datetime.fromisoformat(date.replace("Z", "+00:00"))

        counterparty = None
        if txn_type.counterparty_key:
            # Documents written without a name carry no counterparty key
            counterparty = data.get(txn_type.counterparty_key) or ""

        return cls(
            type=txn_type,
            amount=Decimal(str(data["amount"])),
            date=date,
            counterparty=counterparty
        )


@dataclass
class Account:
    """
    Named balance holder with an ordered transaction history.
    Insertion order of transactions is the order operations were applied.
    """
    id: int
    name: str
    balance: Decimal = Decimal("0")
    transactions: List[Transaction] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))

        if self.id < 1:
            raise ValueError("Account id must be a positive integer")

        if self.balance < 0:
            raise ValueError("Account balance cannot be negative")

    def can_debit(self, amount: Decimal) -> bool:
        """Check if amount can be taken without going below zero"""
        return self.balance >= amount

    def credit(self, transaction: Transaction) -> None:
        self.balance = exact_sum(self.balance, transaction.amount)
        self.transactions.append(transaction)

    def debit(self, transaction: Transaction) -> None:
        if not self.can_debit(transaction.amount):
            raise ValueError("Debit would make balance negative")
        self.balance = exact_sum(self.balance, -transaction.amount)
        self.transactions.append(transaction)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored document layout"""
        return {
            "id": self.id,
            "name": self.name,
            "balance": str(self.balance),
            "transactions": [txn.to_dict() for txn in self.transactions]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Create instance from the stored document layout"""
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            balance=Decimal(str(data["balance"])),
            transactions=[
                Transaction.from_dict(txn) for txn in data.get("transactions", [])
            ]
        )
