"""
Simple Bank

A small demonstration banking ledger: named accounts with balances and
transaction histories, stored as a single document and exposed over HTTP.
"""

__version__ = "1.0.0"
