"""Base model for derived ledger records.

Every derived record inherits from :class:`LedgerBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase names used by node
  metadata (``candidateCount``, ``runnersUp``) map to snake_case fields.
* ``frozen=True``: each emission of a derived stream is a fresh,
  immutable value.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

#: Account identifier as delivered by the node (SS58 string or raw 32 bytes).
AccountId = str | bytes

#: Balance in the chain's smallest unit.
Balance = int

#: ``(account, balance)`` pair as stored by the election modules.
AccountBalance = tuple[AccountId, Balance]


class LedgerBaseModel(BaseModel):
    """Base for derived records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
