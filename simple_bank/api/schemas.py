"""
Pydantic schemas for API requests and responses
"""

from typing import Any, Dict
from pydantic import BaseModel, Field

from ..accounts import Account
from ..ledger import TransferResult


class CreateAccountRequest(BaseModel):
    name: str = Field("", description="Display name of the account holder")


class AmountRequest(BaseModel):
    # Presence and positivity are checked by the ledger
    amount: Any = Field(None, description="Positive amount")


def account_payload(account: Account) -> Dict[str, Any]:
    """Account in the stored layout with amounts left as numbers"""
    data = account.to_dict()
    data["balance"] = account.balance
    for payload, transaction in zip(data["transactions"], account.transactions):
        payload["amount"] = transaction.amount
    return data


def transfer_payload(result: TransferResult) -> Dict[str, Any]:
    return {
        "from": account_payload(result.from_account),
        "to": account_payload(result.to_account)
    }
