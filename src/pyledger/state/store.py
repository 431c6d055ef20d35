"""In-memory storage collaborator.

Implements :class:`pyledger.api.LedgerApi` over plain dictionaries. Values
are served exactly as set: the store does not judge or merge them.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Hashable, Sequence
from typing import Any

from pyledger.api import StorageKey
from pyledger.exceptions import LedgerApiError
from pyledger.stream import LiveStream, Subject, combine_latest

_logger = logging.getLogger(__name__)

_ItemKey = tuple[str, str, tuple[Hashable, ...]]


class StorageStore:
    """Storage items, constants and module sections held in memory.

    Every storage item is backed by a :class:`Subject`; :meth:`set` emits the
    new value to every live query of that item.
    """

    def __init__(self) -> None:
        self._sections: set[str] = set()
        self._constants: dict[StorageKey, Any] = {}
        self._subjects: dict[_ItemKey, Subject[Any]] = {}

    def _subject(self, key: _ItemKey) -> Subject[Any]:
        subject = self._subjects.get(key)
        if subject is None:
            subject = Subject()
            self._subjects[key] = subject
        return subject

    # ------------------------------------------------------------------
    # Feeding
    # ------------------------------------------------------------------

    def register_section(self, section: str) -> None:
        self._sections.add(section)

    def set_constant(self, section: str, name: str, value: Any) -> None:
        self.register_section(section)
        self._constants[(section, name)] = value

    def set(self, section: str, item: str, value: Any, *args: Hashable) -> None:
        """Store *value* for a storage item and emit it to live queries."""
        self.register_section(section)
        _logger.debug("Storage item %s.%s updated", section, item)
        self._subject((section, item, args)).emit(copy.deepcopy(value))

    def fail(self, section: str, item: str, exc: BaseException, *args: Hashable) -> None:
        """Fail the live stream of one storage item (e.g. on decode failure)."""
        _logger.warning("Storage item %s.%s failed: %s", section, item, exc)
        self._subject((section, item, args)).fail(exc)

    def get(self, section: str, item: str, *args: Hashable) -> Any:
        subject = self._subjects.get((section, item, args))
        if subject is None:
            return None
        return copy.deepcopy(subject.latest)

    # ------------------------------------------------------------------
    # LedgerApi
    # ------------------------------------------------------------------

    def has_section(self, section: str) -> bool:
        return section in self._sections

    def constant(self, section: str, name: str) -> Any:
        try:
            return self._constants[(section, name)]
        except KeyError:
            raise LedgerApiError(
                f"Unknown constant {section}.{name}",
                section=section,
                item=name,
            ) from None

    def query(self, section: str, item: str, *args: Hashable) -> LiveStream[Any]:
        return self._subject((section, item, args))

    def query_multi(self, entries: Sequence[StorageKey]) -> LiveStream[tuple[Any, ...]]:
        return combine_latest(*(self.query(section, item) for section, item in entries))
