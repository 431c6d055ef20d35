from __future__ import annotations

import pytest

from pyledger._memo import MemoCache, SharedStream, memoize
from pyledger.stream import LiveStream, Subject


class _CountingFactory:
    def __init__(self) -> None:
        self.calls = 0
        self.upstream: Subject[int] = Subject()

    def __call__(self, *args: object) -> LiveStream[int]:
        self.calls += 1
        return self.upstream


def test_factory_called_once_per_identity() -> None:
    cache = MemoCache()
    factory = _CountingFactory()
    get = cache.memoize(factory)

    first = get()
    second = get()

    assert first is second
    assert factory.calls == 1
    assert len(cache) == 1


def test_separate_wrappers_of_same_factory_share_entry() -> None:
    cache = MemoCache()
    factory = _CountingFactory()

    assert cache.memoize(factory)() is cache.memoize(factory)()
    assert factory.calls == 1


def test_arguments_are_part_of_identity() -> None:
    cache = MemoCache()
    factory = _CountingFactory()
    get = cache.memoize(factory)

    assert get("alice") is get("alice")
    assert get("alice") is not get("bob")
    assert factory.calls == 2


def test_explicit_key_and_contains() -> None:
    cache = MemoCache()
    factory = _CountingFactory()

    cache.memoize(factory, key="members")()

    assert ("members", ()) in cache
    assert factory not in cache


def test_isolated_caches_do_not_share() -> None:
    factory = _CountingFactory()

    MemoCache().memoize(factory)()
    MemoCache().memoize(factory)()

    assert factory.calls == 2


def test_module_level_memoize_uses_given_cache() -> None:
    cache = MemoCache()
    factory = _CountingFactory()

    memoize(factory, cache=cache)()
    memoize(factory, cache=cache)()

    assert factory.calls == 1
    assert len(cache) == 1


def test_shared_stream_subscribes_upstream_once_and_keeps_it() -> None:
    upstream: Subject[int] = Subject()
    shared = SharedStream(upstream, key="test")
    seen_a: list[int] = []
    seen_b: list[int] = []

    sub_a = shared.subscribe(seen_a.append)
    sub_b = shared.subscribe(seen_b.append)
    upstream.emit(7)

    assert upstream.observer_count == 1
    assert seen_a == [7]
    assert seen_b == [7]

    sub_a.unsubscribe()
    sub_b.unsubscribe()

    # Detaching every consumer does not close the shared upstream.
    assert shared.connected
    assert upstream.observer_count == 1


def test_shared_stream_replays_latest_to_late_subscriber() -> None:
    upstream: Subject[int] = Subject()
    shared = SharedStream(upstream)
    shared.subscribe(lambda _value: None)
    upstream.emit(1)
    upstream.emit(2)
    late: list[int] = []

    shared.subscribe(late.append)

    assert late == [2]


def test_shared_stream_forwards_upstream_failure() -> None:
    upstream: Subject[int] = Subject()
    shared = SharedStream(upstream)
    errors: list[BaseException] = []
    shared.subscribe(lambda _value: None, errors.append)
    failure = RuntimeError("node went away")

    upstream.fail(failure)

    assert errors == [failure]


def test_clear_drops_entries_only() -> None:
    cache = MemoCache()
    factory = _CountingFactory()
    stream = cache.memoize(factory)()
    stream.subscribe(lambda _value: None)

    cache.clear()
    cache.memoize(factory)()

    assert factory.calls == 2
    assert factory.upstream.observer_count == 1


def test_raising_consumer_does_not_starve_other_subscribers() -> None:
    upstream: Subject[int] = Subject()
    shared = MemoCache().memoize(lambda: upstream)()
    seen: list[int] = []

    def _broken(_value: int) -> None:
        raise RuntimeError("consumer bug")

    shared.subscribe(_broken, lambda _exc: None)
    shared.subscribe(seen.append)

    with pytest.raises(RuntimeError, match="consumer bug"):
        upstream.emit(1)

    assert seen == [1]
    upstream.emit(2)
    assert seen == [1, 2]
