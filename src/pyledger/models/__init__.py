"""Data models for derived ledger state."""

from pyledger.models._base import AccountBalance, AccountId, Balance, LedgerBaseModel
from pyledger.models.elections import DerivedElectionsInfo, ElectionStrategy

__all__ = [
    "AccountBalance",
    "AccountId",
    "Balance",
    "DerivedElectionsInfo",
    "ElectionStrategy",
    "LedgerBaseModel",
]
