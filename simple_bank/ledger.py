"""
Ledger Store Module

Owns the set of accounts and applies balance-affecting operations. Each
operation loads the whole ledger document, validates every precondition,
mutates, and writes the whole document back. A single lock serializes the
read-modify-write cycle so concurrent callers cannot lose updates.
"""

from decimal import Decimal, DecimalException, InvalidOperation
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple
import threading

from .accounts import Account, Transaction, TransactionType, exact_sum
from .exceptions import InvalidAmountError, AccountNotFoundError, InsufficientFundsError
from .storage import StorageInterface
from .logging_config import get_logger, log_action


# Accounts written on first start when the backing store is empty
DEFAULT_ACCOUNTS: Tuple[Tuple[str, Decimal], ...] = (
    ("João Silva", Decimal("1000")),
    ("Maria Souza", Decimal("5000")),
)

# Accepted amounts: at most eight decimal places, below MAX_AMOUNT
AMOUNT_QUANTUM = Decimal("1E-8")
MAX_AMOUNT = Decimal("1E15")


def parse_amount(amount: Any) -> Decimal:
    """
    Convert a caller supplied amount to a strictly positive Decimal.

    Raises:
        InvalidAmountError: amount is missing, not a finite number, <= 0,
            finer than AMOUNT_QUANTUM or not below MAX_AMOUNT
    """
    if amount is None or isinstance(amount, bool):
        raise InvalidAmountError(amount)

    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)):
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise InvalidAmountError(amount)
    else:
        raise InvalidAmountError(amount)

    if not value.is_finite() or value <= 0 or value >= MAX_AMOUNT:
        raise InvalidAmountError(amount)
    if value.quantize(AMOUNT_QUANTUM) != value:
        raise InvalidAmountError(amount)
    return value


@dataclass
class TransferResult:
    """Both sides of a completed transfer"""
    from_account: Account
    to_account: Account


class LedgerStore:
    """
    Ledger of accounts persisted as one document
    """

    def __init__(
        self,
        storage: StorageInterface,
        seed_accounts: Sequence[Tuple[str, Decimal]] = DEFAULT_ACCOUNTS
    ):
        self.storage = storage
        self.logger = get_logger("simple_bank.ledger")
        self._lock = threading.RLock()
        self._initialize(seed_accounts)

    def _initialize(self, seed_accounts: Sequence[Tuple[str, Decimal]]) -> None:
        """Seed the backing store once; existing data is left untouched"""
        with self._lock:
            if self.storage.exists():
                return

            accounts = [
                Account(id=index, name=name, balance=Decimal(str(balance)))
                for index, (name, balance) in enumerate(seed_accounts, start=1)
            ]
            self._save(accounts)

            log_action(
                self.logger, "info", "Ledger initialized",
                action="initialize_ledger", resource="ledger",
                extra={"accounts": [account.id for account in accounts]}
            )

    def _load(self) -> List[Account]:
        document = self.storage.load() or {"accounts": []}
        return [Account.from_dict(data) for data in document.get("accounts", [])]

    def _save(self, accounts: List[Account]) -> None:
        self.storage.save({"accounts": [account.to_dict() for account in accounts]})

    @staticmethod
    def _find(accounts: List[Account], account_id: int) -> Account:
        for account in accounts:
            if account.id == account_id:
                return account
        raise AccountNotFoundError(account_id)

    @staticmethod
    def _check_posting(account: Account, delta: Decimal, amount: Any) -> None:
        """Reject a posting whose new balance cannot be represented exactly"""
        try:
            exact_sum(account.balance, delta)
        except DecimalException:
            raise InvalidAmountError(amount)

    def _reject(self, action: str, error: Exception, **extra) -> None:
        log_action(
            self.logger, "warning", f"{action} rejected: {error}",
            action=action, resource="ledger",
            extra={"error": type(error).__name__, **extra}
        )

    def list_accounts(self) -> List[Account]:
        """All accounts in storage order"""
        with self._lock:
            return self._load()

    def get_account(self, account_id: int) -> Account:
        """
        Get account by ID

        Raises:
            AccountNotFoundError: no account has this ID
        """
        with self._lock:
            return self._find(self._load(), account_id)

    def create_account(self, name: str) -> Account:
        """
        Create an empty account with the next free ID

        Args:
            name: Display name, stored as given

        Returns:
            The new account with zero balance and no transactions
        """
        with self._lock:
            accounts = self._load()
            next_id = max((account.id for account in accounts), default=0) + 1
            account = Account(id=next_id, name=name)
            accounts.append(account)
            self._save(accounts)

        log_action(
            self.logger, "info", f"Account created: {account.id}",
            action="create_account", resource=f"account:{account.id}",
            extra={"account_id": account.id, "name": name}
        )
        return account

    def deposit(self, account_id: int, amount: Any) -> Account:
        """
        Credit an account

        Raises:
            InvalidAmountError: amount missing or not positive
            AccountNotFoundError: no account has this ID
        """
        try:
            value = parse_amount(amount)
            with self._lock:
                accounts = self._load()
                account = self._find(accounts, account_id)
                self._check_posting(account, value, amount)

                account.credit(Transaction(
                    type=TransactionType.DEPOSIT,
                    amount=value,
                    date=datetime.now(timezone.utc)
                ))
                self._save(accounts)
        except (InvalidAmountError, AccountNotFoundError) as e:
            self._reject("deposit", e, account_id=account_id)
            raise

        log_action(
            self.logger, "info", f"Deposit posted to account {account_id}",
            action="deposit", resource=f"account:{account_id}",
            extra={"amount": str(value), "balance": str(account.balance)}
        )
        return account

    def withdraw(self, account_id: int, amount: Any) -> Account:
        """
        Debit an account

        Raises:
            InvalidAmountError: amount missing or not positive
            AccountNotFoundError: no account has this ID
            InsufficientFundsError: balance is lower than amount
        """
        try:
            value = parse_amount(amount)
            with self._lock:
                accounts = self._load()
                account = self._find(accounts, account_id)
                if not account.can_debit(value):
                    raise InsufficientFundsError(account.id, account.balance, value)
                self._check_posting(account, -value, amount)

                account.debit(Transaction(
                    type=TransactionType.WITHDRAW,
                    amount=value,
                    date=datetime.now(timezone.utc)
                ))
                self._save(accounts)
        except (InvalidAmountError, AccountNotFoundError, InsufficientFundsError) as e:
            self._reject("withdraw", e, account_id=account_id)
            raise

        log_action(
            self.logger, "info", f"Withdrawal posted to account {account_id}",
            action="withdraw", resource=f"account:{account_id}",
            extra={"amount": str(value), "balance": str(account.balance)}
        )
        return account

    def transfer(self, from_account_id: int, to_account_id: int, amount: Any) -> TransferResult:
        """
        Move funds between two accounts as a single write.

        Both transactions share one timestamp and record the other account's
        name. A missing account is reported for the source side first.

        Raises:
            InvalidAmountError: amount missing or not positive
            AccountNotFoundError: either account does not exist
            InsufficientFundsError: source balance is lower than amount
        """
        try:
            value = parse_amount(amount)
            with self._lock:
                accounts = self._load()
                source = self._find(accounts, from_account_id)
                destination = self._find(accounts, to_account_id)
                if not source.can_debit(value):
                    raise InsufficientFundsError(source.id, source.balance, value)
                self._check_posting(source, -value, amount)
                self._check_posting(destination, value, amount)

                now = datetime.now(timezone.utc)
                transfer_out = Transaction(
                    type=TransactionType.TRANSFER_OUT,
                    amount=value,
                    date=now,
                    counterparty=destination.name
                )
                transfer_in = Transaction(
                    type=TransactionType.TRANSFER_IN,
                    amount=value,
                    date=now,
                    counterparty=source.name
                )

                source.debit(transfer_out)
                destination.credit(transfer_in)
                self._save(accounts)
        except (InvalidAmountError, AccountNotFoundError, InsufficientFundsError) as e:
            self._reject(
                "transfer", e,
                from_account_id=from_account_id, to_account_id=to_account_id
            )
            raise

        log_action(
            self.logger, "info",
            f"Transfer posted from account {from_account_id} to account {to_account_id}",
            action="transfer", resource=f"account:{from_account_id}",
            extra={
                "amount": str(value),
                "from_balance": str(source.balance),
                "to_balance": str(destination.balance)
            }
        )
        return TransferResult(from_account=source, to_account=destination)

