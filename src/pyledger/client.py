"""High-level derive client for a ledger node connection."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pyledger._memo import MemoCache
from pyledger.api import LedgerApi, TypeRegistry
from pyledger.config import LedgerConfig
from pyledger.derive import elections as _elections
from pyledger.exceptions import LedgerConfigError, LedgerError
from pyledger.known import SPEC_TABLES, apply_spec_types, get_spec_types
from pyledger.known.versioned import VersionOverrideTable
from pyledger.models.elections import DerivedElectionsInfo, ElectionStrategy
from pyledger.stream import LiveStream

_logger = logging.getLogger(__name__)


class LedgerDeriveClient:
    """Derived views over a node connection.

    Owns the memo cache shared by every derived query, so two calls to the
    same derive method share a single set of upstream subscriptions.

    Usage::

        client = LedgerDeriveClient(api, LedgerConfig.from_env())
        async for info in client.elections_info().values():
            print(info.members)
    """

    def __init__(
        self,
        api: LedgerApi,
        config: LedgerConfig | None = None,
        *,
        cache: MemoCache | None = None,
        tables: Mapping[str, VersionOverrideTable] | None = None,
    ) -> None:
        self._api = api
        self._config = config or LedgerConfig()
        self._cache = cache if cache is not None else MemoCache()
        self._tables: dict[str, VersionOverrideTable] = dict(tables if tables is not None else SPEC_TABLES)
        self._elections_info: Callable[[], LiveStream[DerivedElectionsInfo]] | None = None
        self._closed = False

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def cache(self) -> MemoCache:
        return self._cache

    def _require_open(self) -> None:
        if self._closed:
            raise LedgerError("Client is closed")

    def close(self) -> None:
        """Drop cached derived queries. Streams already handed out keep running."""
        self._cache.clear()
        self._elections_info = None
        self._closed = True

    # ------------------------------------------------------------------
    # Elections
    # ------------------------------------------------------------------

    def election_strategy(self) -> ElectionStrategy:
        self._require_open()
        return _elections.select_strategy(self._api, self._config)

    def elections_info(self) -> LiveStream[DerivedElectionsInfo]:
        """Live combined election info, shared across callers."""
        self._require_open()
        if self._elections_info is None:
            self._elections_info = _elections.info(self._api, cache=self._cache, config=self._config)
        return self._elections_info()

    # ------------------------------------------------------------------
    # Known types
    # ------------------------------------------------------------------

    def add_spec_table(
        self,
        spec_name: str,
        entries: Iterable[Mapping[str, Any]],
        *,
        base: Mapping[str, str] | None = None,
    ) -> VersionOverrideTable:
        """Declare the override table for a spec name this client should know.

        Gaps between intervals are rejected unless ``config.strict_tables``
        is off.
        """
        table = VersionOverrideTable.from_declarative(entries, base=base, strict=self._config.strict_tables)
        self._tables[spec_name] = table
        return table

    def _resolve_spec(self, spec_name: str | None, spec_version: int | None) -> tuple[str, int]:
        name = spec_name if spec_name is not None else self._config.spec_name
        version = spec_version if spec_version is not None else self._config.spec_version
        if name is None or version is None:
            raise LedgerConfigError("spec_name and spec_version are required (set them in LedgerConfig)")
        return name, version

    def spec_types(self, spec_name: str | None = None, spec_version: int | None = None) -> dict[str, str]:
        """Type overrides for the configured (or given) spec and version."""
        name, version = self._resolve_spec(spec_name, spec_version)
        return get_spec_types(name, version, tables=self._tables)

    def register_spec_types(
        self,
        registry: TypeRegistry,
        spec_name: str | None = None,
        spec_version: int | None = None,
    ) -> dict[str, str]:
        name, version = self._resolve_spec(spec_name, spec_version)
        _logger.debug("Registering known types spec=%s version=%s", name, version)
        return apply_spec_types(registry, name, version, tables=self._tables)
