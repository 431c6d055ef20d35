"""Known override tables, keyed by chain spec name."""

from __future__ import annotations

from collections.abc import Mapping

from pyledger.known.spec import rococo
from pyledger.known.versioned import VersionOverrideTable

SPEC_TABLES: Mapping[str, VersionOverrideTable] = {
    "rococo": rococo.VERSIONED,
}

__all__ = ["SPEC_TABLES"]
