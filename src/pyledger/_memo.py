"""Internal memoization cache for shared live queries."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

from pyledger.stream import LiveStream, Subject, Subscription, _Observer

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class SharedStream(LiveStream[T]):
    """Multicasts one upstream subscription to any number of subscribers.

    The upstream is subscribed on the first subscriber and stays connected
    for the life of the stream, even after every subscriber has detached.
    The latest value is replayed to late subscribers.
    """

    def __init__(self, source: LiveStream[T], *, key: Hashable = None) -> None:
        self._source = source
        self._key = key
        self._subject: Subject[T] = Subject()
        self._connection: Subscription | None = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    def _subscribe(self, observer: _Observer) -> Subscription:
        subscription = self._subject._subscribe(observer)
        if self._connection is None:
            _logger.debug("Connecting shared stream key=%r", self._key)
            self._connection = self._source.subscribe(self._subject.emit, self._subject.fail)
        return subscription


class MemoCache:
    """Process-wide (per composition root) cache of shared live queries.

    Entries are only ever read or inserted by :meth:`memoize` callables;
    nothing closes a cached upstream subscription.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, SharedStream[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _entry(self, key: Hashable, factory: Callable[[], LiveStream[T]]) -> SharedStream[T]:
        entry = self._entries.get(key)
        if entry is None:
            _logger.debug("Memo miss key=%r", key)
            entry = SharedStream(factory(), key=key)
            self._entries[key] = entry
        return entry

    def memoize(
        self,
        factory: Callable[..., LiveStream[T]],
        *,
        key: Hashable = None,
    ) -> Callable[..., LiveStream[T]]:
        """Wrap *factory* so each identity builds its live query once.

        The identity is ``key`` (or *factory* itself) plus the positional
        arguments of the call.
        """
        identity = factory if key is None else key

        def _memoized(*args: Hashable) -> LiveStream[T]:
            return self._entry((identity, args), lambda: factory(*args))

        _memoized.__doc__ = factory.__doc__
        return _memoized

    def clear(self) -> None:
        """Forget every entry. Already-connected upstreams are left alone."""
        self._entries.clear()


def memoize(
    factory: Callable[..., LiveStream[T]],
    *,
    cache: MemoCache | None = None,
    key: Hashable = None,
) -> Callable[..., LiveStream[T]]:
    """Memoize *factory* in *cache*, or in a private cache when omitted."""
    return (cache if cache is not None else MemoCache()).memoize(factory, key=key)
