"""
Account endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_ledger
from .schemas import (
    CreateAccountRequest, AmountRequest,
    account_payload, transfer_payload
)
from ..ledger import LedgerStore


router = APIRouter()


@router.get("")
def list_accounts(ledger: LedgerStore = Depends(get_ledger)):
    """List all accounts"""
    return [account_payload(account) for account in ledger.list_accounts()]


@router.get("/{account_id}")
def get_account(account_id: int, ledger: LedgerStore = Depends(get_ledger)):
    """Get account details with transaction history"""
    return account_payload(ledger.get_account(account_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_account(
    request: CreateAccountRequest,
    ledger: LedgerStore = Depends(get_ledger)
):
    """Open a new account with zero balance"""
    return account_payload(ledger.create_account(request.name))


@router.post("/{account_id}/deposit")
def deposit(
    account_id: int,
    request: AmountRequest,
    ledger: LedgerStore = Depends(get_ledger)
):
    """Deposit funds into an account"""
    return account_payload(ledger.deposit(account_id, request.amount))


@router.post("/{account_id}/withdraw")
def withdraw(
    account_id: int,
    request: AmountRequest,
    ledger: LedgerStore = Depends(get_ledger)
):
    """Withdraw funds from an account"""
    return account_payload(ledger.withdraw(account_id, request.amount))


@router.post("/{from_account_id}/transfer/{to_account_id}")
def transfer(
    from_account_id: int,
    to_account_id: int,
    request: AmountRequest,
    ledger: LedgerStore = Depends(get_ledger)
):
    """Transfer funds between two accounts"""
    return transfer_payload(ledger.transfer(from_account_id, to_account_id, request.amount))
