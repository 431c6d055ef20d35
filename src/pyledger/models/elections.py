"""Election module models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from pyledger.models._base import AccountBalance, AccountId, Balance, LedgerBaseModel


class ElectionStrategy(StrEnum):
    """Mutually exclusive election module variants."""

    COUNTED_SET = "counted_set"
    """Legacy ``elections`` module: candidate counter plus voter sets."""

    RANKED_BALLOT = "ranked_ballot"
    """``electionsPhragmen`` module: balances, runners-up and bonds."""


class DerivedElectionsInfo(LedgerBaseModel):
    """Combined view of the election module storage.

    ``members`` and ``runners_up`` are ``(account, balance)`` pairs. The
    counted-set variant stores no member balance, so its members carry a
    zero balance and ``runners_up`` is always empty.

    The derive mappers build it with ``model_construct``: node values are
    trusted and passed through as delivered, never validated or coerced.
    """

    candidates: tuple[AccountId, ...] = ()
    candidate_count: int = 0
    desired_seats: int = 0
    members: tuple[AccountBalance, ...] = ()
    runners_up: tuple[AccountBalance, ...] = ()
    term_duration: int = 0

    # Counted-set only.
    next_voter_set: int | None = None
    vote_count: int | None = None
    voter_count: int | None = None

    # Ranked-ballot only.
    candidacy_bond: Balance | None = Field(default=None, description="Bond reserved on candidacy")
    voting_bond: Balance | None = Field(default=None, description="Bond reserved per voter")
