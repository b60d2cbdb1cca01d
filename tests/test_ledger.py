"""
Test suite for the ledger store

Tests seeding, account creation, deposits, withdrawals and transfers, and
checks that rejected operations leave the stored document untouched.
"""

import pytest
import threading
from decimal import Decimal

from simple_bank.accounts import TransactionType
from simple_bank.exceptions import (
    LedgerError, InvalidAmountError, AccountNotFoundError, InsufficientFundsError
)
from simple_bank.ledger import LedgerStore, TransferResult, DEFAULT_ACCOUNTS, parse_amount
from simple_bank.storage import InMemoryStorage, JSONFileStorage


class TestParseAmount:
    """Test amount validation"""

    @pytest.mark.parametrize("amount, expected", [
        (200, Decimal("200")),
        (12.5, Decimal("12.5")),
        ("0.01", Decimal("0.01")),
        ("0.00000001", Decimal("0.00000001")),
        ("999999999999999.99", Decimal("999999999999999.99")),
        ("1.50000000000", Decimal("1.5")),
        (Decimal("99.99"), Decimal("99.99")),
    ])
    def test_valid_amounts(self, amount, expected):
        assert parse_amount(amount) == expected

    @pytest.mark.parametrize("amount", [
        None, 0, -1, "0", "-5", "", "abc", "NaN", "Infinity",
        True, Decimal("0"), [100], float("nan"),
        "1E-30", "0.000000001", "1E15", "9E+999999",
    ])
    def test_invalid_amounts(self, amount):
        with pytest.raises(InvalidAmountError):
            parse_amount(amount)


class TestLedgerInitialization:
    """Test seeding of the backing store"""

    def test_seeds_default_accounts(self):
        """Test an empty store receives the two example accounts"""
        ledger = LedgerStore(InMemoryStorage())

        accounts = ledger.list_accounts()
        assert [(a.id, a.name, a.balance) for a in accounts] == [
            (1, "João Silva", Decimal("1000")),
            (2, "Maria Souza", Decimal("5000")),
        ]
        assert all(a.transactions == [] for a in accounts)

    def test_does_not_overwrite_existing_data(self):
        """Test seeding happens at most once"""
        storage = InMemoryStorage()
        first = LedgerStore(storage)
        first.deposit(1, 200)

        second = LedgerStore(storage)

        assert second.get_account(1).balance == Decimal("1200")
        assert len(second.list_accounts()) == 2

    def test_existing_empty_ledger_is_kept(self):
        """Test an existing document with no accounts is not reseeded"""
        storage = InMemoryStorage({"accounts": []})

        ledger = LedgerStore(storage)

        assert ledger.list_accounts() == []

    def test_custom_seed(self):
        """Test seeding with a custom account set"""
        ledger = LedgerStore(InMemoryStorage(), seed_accounts=[("Ana", 10)])

        accounts = ledger.list_accounts()
        assert len(accounts) == 1
        assert accounts[0].id == 1
        assert accounts[0].balance == Decimal("10")

    def test_seeds_json_file(self, tmp_path):
        """Test seeding creates the data file"""
        path = tmp_path / "data" / "accounts.json"

        LedgerStore(JSONFileStorage(path))

        assert path.exists()
        assert len(LedgerStore(JSONFileStorage(path)).list_accounts()) == len(DEFAULT_ACCOUNTS)


class TestLedgerStore:
    """Test ledger operations against a seeded store"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.ledger = LedgerStore(self.storage)

    def _balances(self):
        return {a.id: a.balance for a in self.ledger.list_accounts()}

    def test_get_account(self):
        """Test account lookup"""
        account = self.ledger.get_account(2)
        assert account.name == "Maria Souza"
        assert account.balance == Decimal("5000")

    def test_get_missing_account(self):
        """Test lookup of a nonexistent id"""
        with pytest.raises(AccountNotFoundError) as exc_info:
            self.ledger.get_account(999)
        assert exc_info.value.account_id == 999

    def test_create_account_assigns_next_id(self):
        """Test new accounts get max id + 1"""
        account = self.ledger.create_account("Carlos Lima")

        assert account.id == 3
        assert account.name == "Carlos Lima"
        assert account.balance == Decimal("0")
        assert account.transactions == []
        assert self.ledger.get_account(3) == account

    def test_create_account_after_gap(self):
        """Test ids follow the highest existing id, not the account count"""
        storage = InMemoryStorage({"accounts": [
            {"id": 7, "name": "Ana", "balance": "0", "transactions": []}
        ]})
        ledger = LedgerStore(storage)

        assert ledger.create_account("Bruno").id == 8

    def test_create_account_on_empty_ledger(self):
        """Test the first account gets id 1"""
        ledger = LedgerStore(InMemoryStorage(), seed_accounts=())

        account = ledger.create_account("")

        assert account.id == 1
        assert account.name == ""

    def test_deposit(self):
        """Test deposit credits the balance and records a transaction"""
        account = self.ledger.deposit(1, 200)

        assert account.balance == Decimal("1200")
        assert len(account.transactions) == 1
        txn = account.transactions[0]
        assert txn.type == TransactionType.DEPOSIT
        assert txn.amount == Decimal("200")
        assert txn.counterparty is None
        assert txn.date.tzinfo is not None

        # Persisted
        assert self.ledger.get_account(1) == account

    def test_withdraw(self):
        """Test withdraw debits the balance and records a transaction"""
        account = self.ledger.withdraw(2, Decimal("1250.50"))

        assert account.balance == Decimal("3749.50")
        assert account.transactions[-1].type == TransactionType.WITHDRAW
        assert account.transactions[-1].amount == Decimal("1250.50")

    def test_withdraw_entire_balance(self):
        """Test balance may reach exactly zero"""
        account = self.ledger.withdraw(1, 1000)
        assert account.balance == Decimal("0")

    def test_deposit_then_withdraw_restores_balance(self):
        """Test deposit followed by the same withdrawal is balance neutral"""
        before = self.ledger.get_account(1).balance

        self.ledger.deposit(1, "75.25")
        account = self.ledger.withdraw(1, "75.25")

        assert account.balance == before
        assert [t.type for t in account.transactions] == [
            TransactionType.DEPOSIT, TransactionType.WITHDRAW
        ]

    def test_transfer(self):
        """Test transfer moves funds and records both sides"""
        result = self.ledger.transfer(1, 2, 300)

        assert isinstance(result, TransferResult)
        assert result.from_account.balance == Decimal("700")
        assert result.to_account.balance == Decimal("5300")

        out = result.from_account.transactions[-1]
        incoming = result.to_account.transactions[-1]
        assert out.type == TransactionType.TRANSFER_OUT
        assert out.counterparty == "Maria Souza"
        assert incoming.type == TransactionType.TRANSFER_IN
        assert incoming.counterparty == "João Silva"
        assert out.amount == incoming.amount == Decimal("300")
        assert out.date == incoming.date

        assert self._balances() == {1: Decimal("700"), 2: Decimal("5300")}

    def test_transfer_to_same_account(self):
        """Test a self transfer records both sides and keeps the balance"""
        result = self.ledger.transfer(1, 1, 100)

        assert result.from_account is result.to_account
        assert result.from_account.balance == Decimal("1000")
        assert [t.type for t in result.from_account.transactions] == [
            TransactionType.TRANSFER_OUT, TransactionType.TRANSFER_IN
        ]

    def test_scenario(self):
        """Test the documented deposit, failed withdrawal, transfer sequence"""
        account = self.ledger.deposit(1, 200)
        assert account.balance == Decimal("1200")
        assert len(account.transactions) == 1

        with pytest.raises(InsufficientFundsError):
            self.ledger.withdraw(1, 5000)
        assert self.ledger.get_account(1).balance == Decimal("1200")

        result = self.ledger.transfer(1, 2, 300)
        assert result.from_account.balance == Decimal("900")
        assert result.to_account.balance == Decimal("5300")
        assert result.from_account.transactions[-1].counterparty == "Maria Souza"
        assert result.to_account.transactions[-1].counterparty == "João Silva"

    def test_errors_are_ledger_errors(self):
        """Test every failure kind shares the LedgerError base"""
        for error in (InvalidAmountError, AccountNotFoundError, InsufficientFundsError):
            assert issubclass(error, LedgerError)
            assert issubclass(error, ValueError)


class TestRejectedOperations:
    """Test failed operations leave the stored document byte-for-byte unchanged"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.ledger = LedgerStore(self.storage)
        self.ledger.deposit(1, 50)
        self.before = self.storage.dump()

    def teardown_method(self):
        assert self.storage.dump() == self.before

    @pytest.mark.parametrize("amount", [None, 0, -10, "abc"])
    def test_deposit_invalid_amount(self, amount):
        with pytest.raises(InvalidAmountError):
            self.ledger.deposit(1, amount)

    @pytest.mark.parametrize("amount", [None, 0, -10])
    def test_withdraw_invalid_amount(self, amount):
        with pytest.raises(InvalidAmountError):
            self.ledger.withdraw(1, amount)

    @pytest.mark.parametrize("amount", [None, 0, -10])
    def test_transfer_invalid_amount(self, amount):
        with pytest.raises(InvalidAmountError):
            self.ledger.transfer(1, 2, amount)

    def test_invalid_amount_checked_before_existence(self):
        """Test amount validation runs first"""
        with pytest.raises(InvalidAmountError):
            self.ledger.deposit(999, 0)

    def test_deposit_missing_account(self):
        with pytest.raises(AccountNotFoundError):
            self.ledger.deposit(999, 10)

    def test_withdraw_missing_account(self):
        with pytest.raises(AccountNotFoundError):
            self.ledger.withdraw(999, 10)

    def test_withdraw_insufficient_funds(self):
        with pytest.raises(InsufficientFundsError) as exc_info:
            self.ledger.withdraw(1, Decimal("1050.01"))

        assert exc_info.value.account_id == 1
        assert exc_info.value.balance == Decimal("1050")
        assert exc_info.value.amount == Decimal("1050.01")

    def test_transfer_missing_source(self):
        with pytest.raises(AccountNotFoundError) as exc_info:
            self.ledger.transfer(999, 2, 10)
        assert exc_info.value.account_id == 999

    def test_transfer_missing_destination(self):
        with pytest.raises(AccountNotFoundError) as exc_info:
            self.ledger.transfer(1, 999, 10)
        assert exc_info.value.account_id == 999

    def test_transfer_both_missing_reports_source(self):
        with pytest.raises(AccountNotFoundError) as exc_info:
            self.ledger.transfer(998, 999, 10)
        assert exc_info.value.account_id == 998

    def test_transfer_insufficient_funds(self):
        with pytest.raises(InsufficientFundsError):
            self.ledger.transfer(1, 2, 5000)

    def test_transfer_below_precision(self):
        """Test an amount too small to move either balance is refused"""
        with pytest.raises(InvalidAmountError):
            self.ledger.transfer(1, 2, "1E-30")

    def test_deposit_beyond_range(self):
        """Test huge amounts are refused instead of overflowing"""
        for _ in range(2):
            with pytest.raises(InvalidAmountError):
                self.ledger.deposit(1, "9E+999999")


class TestExactBalances:
    """Test balances are never rounded"""

    def test_deposit_that_would_round_is_refused(self):
        """Test a posting whose result needs more digits than the context holds"""
        storage = InMemoryStorage()
        ledger = LedgerStore(storage, seed_accounts=[("Ana", Decimal(10) ** 27)])
        before = storage.dump()

        with pytest.raises(InvalidAmountError):
            ledger.deposit(1, "0.5")

        assert storage.dump() == before
        assert ledger.get_account(1).transactions == []

    def test_transfer_moves_exact_amount(self):
        """Test the smallest accepted amount changes both balances"""
        ledger = LedgerStore(InMemoryStorage())

        result = ledger.transfer(1, 2, "0.00000001")

        assert result.from_account.balance == Decimal("999.99999999")
        assert result.to_account.balance == Decimal("5000.00000001")


class TestLedgerConcurrency:
    """Test the single-writer lock"""

    def test_concurrent_deposits_are_not_lost(self):
        """Test parallel read-modify-write cycles do not overwrite each other"""
        ledger = LedgerStore(InMemoryStorage())
        threads = [
            threading.Thread(target=lambda: [ledger.deposit(1, 1) for _ in range(10)])
            for _ in range(8)
        ]

        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        account = ledger.get_account(1)
        assert account.balance == Decimal("1080")
        assert len(account.transactions) == 80

    def test_concurrent_transfers_keep_total(self):
        """Test money is neither created nor destroyed under contention"""
        ledger = LedgerStore(InMemoryStorage())

        def shuffle(source, target):
            for _ in range(20):
                try:
                    ledger.transfer(source, target, 37)
                except InsufficientFundsError:
                    pass

        threads = [
            threading.Thread(target=shuffle, args=(1, 2)),
            threading.Thread(target=shuffle, args=(2, 1)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        accounts = ledger.list_accounts()
        assert sum(a.balance for a in accounts) == Decimal("6000")
        assert all(a.balance >= 0 for a in accounts)
