"""Structural interfaces of the node-facing collaborators.

The derive layer never talks to a node directly. It consumes whatever
implements these protocols: a live RPC connection in production, the
in-memory :class:`pyledger.state.store.StorageStore`, or a test double.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from pyledger.stream import LiveStream

#: ``(section, item)`` name of a storage entry, e.g. ``("elections", "members")``.
StorageKey = tuple[str, str]


class StorageQuery(Protocol):
    """Live storage subscriptions."""

    def query(self, section: str, item: str, *args: Any) -> LiveStream[Any]:
        ...

    def query_multi(self, entries: Sequence[StorageKey]) -> LiveStream[tuple[Any, ...]]:
        """Batched subscription emitting values in the declared order of *entries*."""
        ...


class ConstantReader(Protocol):
    """Synchronous lookup of a runtime constant."""

    def constant(self, section: str, name: str) -> Any:
        ...


class CapabilityProbe(Protocol):
    """Reports which module sections are registered on the connection."""

    def has_section(self, section: str) -> bool:
        ...


class LedgerApi(StorageQuery, ConstantReader, CapabilityProbe, Protocol):
    """Everything the derive layer needs from a connection."""


class TypeRegistry(Protocol):
    """Decoding registry that accepts type-name overrides."""

    def register(self, types: Mapping[str, str]) -> None:
        ...
