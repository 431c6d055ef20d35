"""Derived election info.

Combines the election module storage of the connected node into a single
live :class:`DerivedElectionsInfo` stream. Two module variants exist and
are queried differently:

* counted-set (``elections``): candidate list plus one batched query of
  counters and voter-set pointers. Members carry no balance.
* ranked-ballot (``electionsPhragmen``): three independent list queries plus
  four runtime constants.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from pyledger._memo import MemoCache
from pyledger.api import CapabilityProbe, LedgerApi, StorageKey
from pyledger.config import LedgerConfig
from pyledger.models._base import AccountBalance, AccountId, Balance
from pyledger.models.elections import DerivedElectionsInfo, ElectionStrategy
from pyledger.stream import LiveStream, combine_latest

_logger = logging.getLogger(__name__)

# Batched counted-set query; the mapper unpacks results in this exact order.
_COUNTED_SET_ITEMS: tuple[str, ...] = (
    "candidateCount",
    "desiredSeats",
    "members",
    "nextVoterSet",
    "termDuration",
    "voteCount",
    "voterCount",
)


def as_sequence(value: Sequence[Any] | None) -> tuple[Any, ...]:
    """Normalize an empty-list sentinel (``None``) to an empty tuple."""
    if value is None:
        return ()
    return tuple(value)


def select_strategy(probe: CapabilityProbe, config: LedgerConfig | None = None) -> ElectionStrategy:
    """Pick the election variant exposed by the node.

    The ranked-ballot section wins whenever it is present, even if the
    legacy section is registered too.
    """
    config = config or LedgerConfig()
    if probe.has_section(config.phragmen_section):
        return ElectionStrategy.RANKED_BALLOT
    return ElectionStrategy.COUNTED_SET


def derive_counted_set(
    candidates: Sequence[AccountId] | None,
    inner: Sequence[Any],
) -> DerivedElectionsInfo:
    (
        candidate_count,
        desired_seats,
        members,
        next_voter_set,
        term_duration,
        vote_count,
        voter_count,
    ) = inner
    return DerivedElectionsInfo.model_construct(
        candidates=as_sequence(candidates),
        candidate_count=candidate_count,
        desired_seats=desired_seats,
        # The legacy module stores (account, term end block); no balance.
        members=tuple((account_id, Balance()) for account_id, _ in as_sequence(members)),
        runners_up=(),
        next_voter_set=next_voter_set,
        term_duration=term_duration,
        vote_count=vote_count,
        voter_count=voter_count,
    )


def _by_balance_desc(entries: Sequence[AccountBalance] | None) -> tuple[AccountBalance, ...]:
    # sorted() is stable, so equal balances keep their storage order.
    return tuple(tuple(entry) for entry in sorted(as_sequence(entries), key=lambda entry: entry[1], reverse=True))


def derive_ranked_ballot(
    candidates: Sequence[AccountId] | None,
    members: Sequence[AccountBalance] | None,
    runners_up: Sequence[AccountBalance] | None,
    *,
    candidacy_bond: Balance,
    desired_seats: int,
    term_duration: int,
    voting_bond: Balance,
) -> DerivedElectionsInfo:
    candidate_list = as_sequence(candidates)
    return DerivedElectionsInfo.model_construct(
        candidates=candidate_list,
        candidate_count=len(candidate_list),
        candidacy_bond=candidacy_bond,
        desired_seats=desired_seats,
        members=_by_balance_desc(members),
        runners_up=_by_balance_desc(runners_up),
        term_duration=term_duration,
        voting_bond=voting_bond,
    )


def query_counted_set(api: LedgerApi, config: LedgerConfig | None = None) -> LiveStream[DerivedElectionsInfo]:
    section = (config or LedgerConfig()).elections_section
    entries: list[StorageKey] = [(section, item) for item in _COUNTED_SET_ITEMS]

    # Candidates can come back as None instead of an empty list.
    return combine_latest(
        api.query(section, "candidates").map(as_sequence),
        api.query_multi(entries),
    ).map(lambda result: derive_counted_set(*result))


def query_ranked_ballot(api: LedgerApi, config: LedgerConfig | None = None) -> LiveStream[DerivedElectionsInfo]:
    section = (config or LedgerConfig()).phragmen_section

    # Constants are read per emission so a failing read fails the stream.
    def _derive(result: tuple[Any, ...]) -> DerivedElectionsInfo:
        return derive_ranked_ballot(
            *result,
            candidacy_bond=api.constant(section, "candidacyBond"),
            desired_seats=api.constant(section, "desiredMembers"),
            term_duration=api.constant(section, "termDuration"),
            voting_bond=api.constant(section, "votingBond"),
        )

    # Separate queries instead of query_multi: a batched empty list arrives
    # space-filled rather than empty.
    return combine_latest(
        api.query(section, "candidates"),
        api.query(section, "members"),
        api.query(section, "runnersUp"),
    ).map(_derive)


_QUERIES: dict[ElectionStrategy, Callable[[LedgerApi, LedgerConfig | None], LiveStream[DerivedElectionsInfo]]] = {
    ElectionStrategy.COUNTED_SET: query_counted_set,
    ElectionStrategy.RANKED_BALLOT: query_ranked_ballot,
}


def info(
    api: LedgerApi,
    *,
    cache: MemoCache,
    config: LedgerConfig | None = None,
) -> Callable[[], LiveStream[DerivedElectionsInfo]]:
    """Return a memoized callable producing the combined election info.

    Usage::

        elections_info = info(api, cache=MemoCache())
        async for current in elections_info().values():
            print(len(current.members), "members,", current.candidate_count, "candidates")
    """

    def _query() -> LiveStream[DerivedElectionsInfo]:
        strategy = select_strategy(api, config)
        _logger.debug("Elections strategy selected: %s", strategy)
        return _QUERIES[strategy](api, config)

    return cache.memoize(_query, key=("elections.info", api))
