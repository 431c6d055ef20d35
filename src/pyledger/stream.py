"""Live value streams.

Every storage query handed to the derive layer is a :class:`LiveStream`: a
push-based stream that keeps emitting as the node's state changes. Streams
are single-threaded and callback driven; :meth:`LiveStream.values` bridges
them into ``async for`` for asyncio consumers.

Failure semantics: a subscriber that does not pass ``on_error`` has the
error re-raised into whoever pushed it (the collaborator), so failures are
never silently dropped. A raising consumer is re-raised only after every
other observer has been notified.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pyledger.exceptions import LedgerStreamError

_logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

OnNext = Callable[[Any], None]
OnError = Callable[[BaseException], None]


def _reraise(exc: BaseException) -> None:
    raise exc


def _deliver(observers: Sequence[_Observer], notify: Callable[[_Observer], None]) -> None:
    """Notify every observer, then raise the first consumer exception.

    One consumer raising must not keep the value (or failure) from the
    remaining observers of a shared stream.
    """
    raised: list[Exception] = []
    for observer in observers:
        try:
            notify(observer)
        except Exception as exc:  # noqa: BLE001
            raised.append(exc)
    if raised:
        if len(raised) > 1:
            _logger.debug("%d stream consumers raised; re-raising the first", len(raised))
        raise raised[0]


@dataclass(slots=True)
class _Observer:
    """A registered ``(on_next, on_error)`` pair.

    ``active`` is cleared on unsubscribe so an emission already in flight
    over a snapshot of observers does not reach a detached consumer.
    """

    on_next: OnNext
    on_error: OnError
    active: bool = True

    def next(self, value: Any) -> None:
        if self.active:
            self.on_next(value)

    def error(self, exc: BaseException) -> None:
        if self.active:
            self.active = False
            self.on_error(exc)


class Subscription:
    """Handle returned by :meth:`LiveStream.subscribe`."""

    def __init__(self, teardown: Callable[[], None] | None = None) -> None:
        self._teardown = teardown
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def unsubscribe(self) -> None:
        """Detach from the stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._teardown is not None:
            self._teardown()


class LiveStream(Generic[T]):
    """Base class for push-based live streams."""

    def subscribe(
        self,
        on_next: Callable[[T], None],
        on_error: OnError | None = None,
    ) -> Subscription:
        observer = _Observer(on_next=on_next, on_error=on_error or _reraise)
        subscription = self._subscribe(observer)

        def _detach() -> None:
            observer.active = False
            subscription.unsubscribe()

        return Subscription(_detach)

    def _subscribe(self, observer: _Observer) -> Subscription:
        raise NotImplementedError

    def map(self, fn: Callable[[T], U]) -> LiveStream[U]:
        """Return a stream emitting ``fn(value)`` for every upstream value."""
        return MappedStream(self, fn)

    async def values(self) -> AsyncIterator[T]:
        """Iterate emissions from an asyncio task.

        The subscription is released when the iterator is closed. An
        upstream failure is raised from the iterator.
        """
        queue: asyncio.Queue[tuple[bool, Any]] = asyncio.Queue()
        subscription = self.subscribe(
            lambda value: queue.put_nowait((True, value)),
            lambda exc: queue.put_nowait((False, exc)),
        )
        try:
            while True:
                ok, item = await queue.get()
                if not ok:
                    raise item
                yield item
        finally:
            subscription.unsubscribe()

    async def first(self) -> T:
        """Wait for the next value (or the replayed latest one)."""
        async with contextlib.aclosing(self.values()) as stream:
            async for value in stream:
                return value
        raise LedgerStreamError("stream ended without emitting")  # pragma: no cover


class Subject(LiveStream[T]):
    """A stream fed by hand via :meth:`emit` and :meth:`fail`.

    The latest value is replayed to late subscribers, so every subscriber
    observes the current state on subscription.
    """

    def __init__(self) -> None:
        self._observers: list[_Observer] = []
        self._has_value = False
        self._value: Any = None
        self._error: BaseException | None = None

    @classmethod
    def of(cls, value: T) -> Subject[T]:
        subject: Subject[T] = cls()
        subject.emit(value)
        return subject

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def latest(self) -> T | None:
        return self._value

    @property
    def failed(self) -> bool:
        return self._error is not None

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def _subscribe(self, observer: _Observer) -> Subscription:
        if self._error is not None:
            observer.error(self._error)
            return Subscription()
        self._observers.append(observer)
        if self._has_value:
            observer.next(self._value)
        return Subscription(lambda: self._remove(observer))

    def _remove(self, observer: _Observer) -> None:
        with contextlib.suppress(ValueError):
            self._observers.remove(observer)

    def emit(self, value: T) -> None:
        if self._error is not None:
            raise LedgerStreamError("cannot emit on a failed stream") from self._error
        self._value = value
        self._has_value = True
        _deliver(list(self._observers), lambda observer: observer.next(value))

    def fail(self, exc: BaseException) -> None:
        if self._error is not None:
            raise LedgerStreamError("stream already failed") from self._error
        self._error = exc
        observers, self._observers = self._observers, []
        _deliver(observers, lambda observer: observer.error(exc))


class MappedStream(LiveStream[U]):
    """Applies a transform to every upstream value.

    An exception raised by the transform fails the subscriber's stream.
    """

    def __init__(self, source: LiveStream[T], fn: Callable[[T], U]) -> None:
        self._source = source
        self._fn = fn

    def _subscribe(self, observer: _Observer) -> Subscription:
        holder: list[Subscription] = []

        def _on_next(value: T) -> None:
            try:
                mapped = self._fn(value)
            except Exception as exc:  # noqa: BLE001
                for sub in holder:
                    sub.unsubscribe()
                observer.error(exc)
                return
            observer.next(mapped)

        subscription = self._source.subscribe(_on_next, observer.error)
        holder.append(subscription)
        if not observer.active:
            subscription.unsubscribe()
        return subscription


class CombinedStream(LiveStream[tuple[Any, ...]]):
    """Latest-value combination of several upstream streams.

    Keeps one slot per source plus a ready count. Nothing is emitted until
    every source has produced a value; after that every upstream emission
    produces a tuple carrying the latest value of every source. The first
    upstream failure detaches the remaining sources and is forwarded as-is.
    """

    def __init__(self, sources: Sequence[LiveStream[Any]]) -> None:
        self._sources = tuple(sources)

    def _subscribe(self, observer: _Observer) -> Subscription:
        count = len(self._sources)
        latest: list[Any] = [None] * count
        seen: list[bool] = [False] * count
        upstream: list[Subscription] = []
        ready = 0
        done = False

        def _teardown() -> None:
            for sub in upstream:
                sub.unsubscribe()

        def _on_next_for(index: int) -> Callable[[Any], None]:
            def _on_next(value: Any) -> None:
                nonlocal ready
                if done:
                    return
                if not seen[index]:
                    seen[index] = True
                    ready += 1
                latest[index] = value
                if ready == count:
                    observer.next(tuple(latest))

            return _on_next

        def _on_error(exc: BaseException) -> None:
            nonlocal done
            if done:
                return
            done = True
            _teardown()
            observer.error(exc)

        for index, source in enumerate(self._sources):
            if done:
                break
            upstream.append(source.subscribe(_on_next_for(index), _on_error))

        if done:
            _teardown()
        return Subscription(_teardown)


def combine_latest(*sources: LiveStream[Any]) -> LiveStream[tuple[Any, ...]]:
    """Combine *sources* into one stream of tuples in declaration order."""
    _logger.debug("Combining %d live streams", len(sources))
    return CombinedStream(sources)
