"""Spec-version based type overrides.

A chain changes the shape of some of its types across runtime upgrades.
The decoding registry therefore needs, for a given spec version, the set of
``{logical type name: concrete type name}`` overrides that applied at that
version. Tables are declared as ordered, inclusive version intervals; the
last interval may be open-ended.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from pyledger.exceptions import LedgerConfigError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BoundedRange:
    """Inclusive ``[min, max]`` version interval."""

    min: int
    max: int

    def contains(self, version: int) -> bool:
        return self.min <= version <= self.max


@dataclass(frozen=True, slots=True)
class OpenRange:
    """Inclusive ``[min, ∞)`` version interval."""

    min: int
    max: None = None

    def contains(self, version: int) -> bool:
        return version >= self.min


VersionRange = BoundedRange | OpenRange


class OverrideEntry(BaseModel):
    """One declarative table entry: ``{"minmax": [0, 9], "types": {...}}``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    minmax: tuple[int, int | None]
    types: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_bounds(self) -> OverrideEntry:
        low, high = self.minmax
        if low < 0:
            raise ValueError(f"minimum version must be non-negative, got {low}")
        if high is not None and high < low:
            raise ValueError(f"maximum version {high} is below minimum {low}")
        return self

    def to_range(self) -> VersionRange:
        low, high = self.minmax
        return OpenRange(low) if high is None else BoundedRange(low, high)


@dataclass(frozen=True, slots=True)
class VersionedOverride:
    range: VersionRange
    types: Mapping[str, str]


@dataclass(frozen=True)
class VersionOverrideTable:
    """Sorted, non-overlapping version intervals plus a shared base mapping.

    Build it with :meth:`from_declarative`; the constructor validates the
    ordering invariants and freezes every mapping.
    """

    entries: tuple[VersionedOverride, ...]
    base: Mapping[str, str] = field(default_factory=dict)
    strict: bool = True
    _mins: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        frozen_entries = tuple(
            VersionedOverride(entry.range, MappingProxyType(dict(entry.types))) for entry in self.entries
        )
        object.__setattr__(self, "entries", frozen_entries)
        object.__setattr__(self, "base", MappingProxyType(dict(self.base)))
        _validate_entries(frozen_entries, strict=self.strict)
        object.__setattr__(self, "_mins", tuple(entry.range.min for entry in frozen_entries))

    @classmethod
    def from_declarative(
        cls,
        entries: Iterable[Mapping[str, Any]],
        *,
        base: Mapping[str, str] | None = None,
        strict: bool = True,
    ) -> VersionOverrideTable:
        """Build a table from ``minmax``/``types`` dicts.

        ``types`` holds only the interval-specific entries; *base* is merged
        underneath at resolution time.
        """
        try:
            parsed = [OverrideEntry.model_validate(entry) for entry in entries]
        except ValidationError as exc:
            raise LedgerConfigError(f"Invalid override table entry: {exc}") from exc
        return cls(
            entries=tuple(VersionedOverride(entry.to_range(), entry.types) for entry in parsed),
            base=base or {},
            strict=strict,
        )

    def find(self, version: int) -> VersionedOverride | None:
        """Return the interval containing *version*, if any."""
        index = bisect.bisect_right(self._mins, version) - 1
        if index < 0:
            return None
        entry = self.entries[index]
        return entry if entry.range.contains(version) else None


def _validate_entries(entries: tuple[VersionedOverride, ...], *, strict: bool) -> None:
    previous: BoundedRange | None = None
    for position, entry in enumerate(entries):
        if isinstance(entry.range, OpenRange) and position != len(entries) - 1:
            raise LedgerConfigError(f"Open-ended range at position {position} must be the last entry")
        if previous is not None:
            prev_max = previous.max
            if entry.range.min <= prev_max:
                raise LedgerConfigError(
                    f"Range starting at {entry.range.min} overlaps or precedes range ending at {prev_max}"
                )
            if strict and entry.range.min != prev_max + 1:
                raise LedgerConfigError(f"Gap between versions {prev_max} and {entry.range.min}")
        # Only the last entry may be open, so every predecessor is bounded.
        if isinstance(entry.range, BoundedRange):
            previous = entry.range


def resolve_overrides(table: VersionOverrideTable, version: int) -> dict[str, str]:
    """Return the type overrides that apply at *version*.

    The base mapping is merged under the matching interval's entries. A
    version outside every interval is not an error: the base mapping alone
    is returned.
    """
    entry = table.find(version)
    if entry is None:
        _logger.debug("No override interval for version %s; using base types", version)
        return dict(table.base)
    return {**table.base, **entry.types}
