from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from pyledger.client import LedgerDeriveClient
from pyledger.config import LedgerConfig
from pyledger.exceptions import LedgerApiError, LedgerConfigError, LedgerError
from pyledger.models.elections import DerivedElectionsInfo, ElectionStrategy
from pyledger.state.store import StorageStore


def _phragmen_store(*, without_constant: str | None = None) -> StorageStore:
    store = StorageStore()
    for name, value in {
        "candidacyBond": 1_000,
        "desiredMembers": 13,
        "termDuration": 600,
        "votingBond": 50,
    }.items():
        if name == without_constant:
            continue
        store.set_constant("electionsPhragmen", name, value)
    store.set("electionsPhragmen", "candidates", ["D"])
    store.set("electionsPhragmen", "members", [("A", 10), ("B", 50), ("C", 30)])
    store.set("electionsPhragmen", "runnersUp", None)
    return store


def _legacy_store(**overrides: Any) -> StorageStore:
    store = StorageStore()
    values = {
        "candidates": None,
        "candidateCount": 0,
        "desiredSeats": 5,
        "members": [("X", 1_200)],
        "nextVoterSet": 3,
        "termDuration": 50,
        "voteCount": 7,
        "voterCount": 9,
    }
    values.update(overrides)
    for item, value in values.items():
        store.set("elections", item, value)
    return store


class _RecordingRegistry:
    def __init__(self) -> None:
        self.registered: list[dict[str, str]] = []

    def register(self, types: Mapping[str, str]) -> None:
        self.registered.append(dict(types))


@pytest.mark.asyncio
async def test_ranked_ballot_info_from_store() -> None:
    client = LedgerDeriveClient(_phragmen_store())

    result = await client.elections_info().first()

    assert client.election_strategy() == ElectionStrategy.RANKED_BALLOT
    assert result.members == (("B", 50), ("C", 30), ("A", 10))
    assert result.runners_up == ()
    assert result.candidate_count == 1
    assert result.desired_seats == 13
    assert result.voting_bond == 50


@pytest.mark.asyncio
async def test_legacy_info_from_store() -> None:
    client = LedgerDeriveClient(_legacy_store())

    result = await client.elections_info().first()

    assert client.election_strategy() == ElectionStrategy.COUNTED_SET
    assert result == DerivedElectionsInfo(
        candidates=(),
        candidate_count=0,
        desired_seats=5,
        members=(("X", 0),),
        runners_up=(),
        next_voter_set=3,
        term_duration=50,
        vote_count=7,
        voter_count=9,
    )


def test_live_updates_reach_every_subscriber() -> None:
    store = _phragmen_store()
    client = LedgerDeriveClient(store)
    first_seen: list[DerivedElectionsInfo] = []
    second_seen: list[DerivedElectionsInfo] = []

    client.elections_info().subscribe(first_seen.append)
    client.elections_info().subscribe(second_seen.append)
    store.set("electionsPhragmen", "candidates", ["D", "E"])

    assert [info.candidate_count for info in first_seen] == [1, 2]
    assert [info.candidate_count for info in second_seen] == [1, 2]
    assert client.elections_info() is client.elections_info()
    assert store.query("electionsPhragmen", "candidates").observer_count == 1  # type: ignore[attr-defined]


def test_raw_account_ids_pass_through_legacy_info() -> None:
    account = bytes(range(200, 232))
    client = LedgerDeriveClient(_legacy_store(candidates=[account], members=[(account, 100)], candidateCount="2"))
    emitted: list[DerivedElectionsInfo] = []
    errors: list[BaseException] = []

    client.elections_info().subscribe(emitted.append, errors.append)

    assert errors == []
    assert emitted[0].candidates == (account,)
    assert emitted[0].members == ((account, 0),)
    # Values are not coerced either.
    assert emitted[0].candidate_count == "2"


def test_missing_constant_fails_the_stream_not_the_call() -> None:
    store = _phragmen_store(without_constant="votingBond")
    client = LedgerDeriveClient(store)
    emitted: list[DerivedElectionsInfo] = []
    errors: list[BaseException] = []

    stream = client.elections_info()
    stream.subscribe(emitted.append, errors.append)

    assert emitted == []
    assert len(errors) == 1
    assert isinstance(errors[0], LedgerApiError)
    assert errors[0].item == "votingBond"


def test_closed_client_rejects_derive_calls() -> None:
    client = LedgerDeriveClient(_legacy_store())
    client.elections_info()

    client.close()

    assert len(client.cache) == 0
    with pytest.raises(LedgerError):
        client.elections_info()


def test_spec_types_from_config() -> None:
    client = LedgerDeriveClient(StorageStore(), LedgerConfig(spec_name="rococo", spec_version=9))

    assert client.spec_types()["RefCount"] == "RefCountTo259"
    assert "RefCount" not in client.spec_types(spec_version=10)


def test_spec_types_require_name_and_version() -> None:
    client = LedgerDeriveClient(StorageStore())

    with pytest.raises(LedgerConfigError):
        client.spec_types()


def test_add_spec_table_honours_strict_setting() -> None:
    entries = [{"minmax": [0, 4], "types": {"Weight": "WeightV1"}}, {"minmax": [8, None], "types": {}}]

    strict = LedgerDeriveClient(StorageStore())
    with pytest.raises(LedgerConfigError):
        strict.add_spec_table("devnet", entries)

    lenient = LedgerDeriveClient(StorageStore(), LedgerConfig(strict_tables=False))
    lenient.add_spec_table("devnet", entries, base={"Address": "AccountId"})
    assert lenient.spec_types("devnet", 2) == {"Address": "AccountId", "Weight": "WeightV1"}
    assert lenient.spec_types("devnet", 6) == {"Address": "AccountId"}


def test_register_spec_types() -> None:
    registry = _RecordingRegistry()
    client = LedgerDeriveClient(StorageStore(), LedgerConfig(spec_name="rococo", spec_version=0))

    applied = client.register_spec_types(registry)

    assert registry.registered == [applied]
    assert applied["CompactAssignments"] == "CompactAssignmentsTo257"
