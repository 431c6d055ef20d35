"""Known type overrides per chain spec and spec version."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pyledger.api import TypeRegistry
from pyledger.known.spec import SPEC_TABLES
from pyledger.known.versioned import (
    BoundedRange,
    OpenRange,
    OverrideEntry,
    VersionedOverride,
    VersionOverrideTable,
    VersionRange,
    resolve_overrides,
)

_logger = logging.getLogger(__name__)


def get_spec_types(
    spec_name: str,
    spec_version: int,
    *,
    tables: Mapping[str, VersionOverrideTable] | None = None,
) -> dict[str, str]:
    """Return the overrides for *spec_name* at *spec_version*.

    Unknown spec names have no overrides.
    """
    table = (tables if tables is not None else SPEC_TABLES).get(spec_name)
    if table is None:
        return {}
    return resolve_overrides(table, spec_version)


def apply_spec_types(
    registry: TypeRegistry,
    spec_name: str,
    spec_version: int,
    *,
    tables: Mapping[str, VersionOverrideTable] | None = None,
) -> dict[str, str]:
    """Register the overrides for *spec_name*/*spec_version* on *registry*."""
    types = get_spec_types(spec_name, spec_version, tables=tables)
    if types:
        registry.register(types)
    _logger.debug(
        "Applied %d type overrides for spec=%s version=%s",
        len(types),
        spec_name,
        spec_version,
    )
    return types


__all__ = [
    "BoundedRange",
    "OpenRange",
    "OverrideEntry",
    "SPEC_TABLES",
    "VersionOverrideTable",
    "VersionRange",
    "VersionedOverride",
    "apply_spec_types",
    "get_spec_types",
    "resolve_overrides",
]
