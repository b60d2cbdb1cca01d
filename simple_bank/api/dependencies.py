"""
Request dependencies
"""

from fastapi import Request

from ..ledger import LedgerStore


def get_ledger(request: Request) -> LedgerStore:
    """Ledger store owned by the running application"""
    return request.app.state.ledger
