"""pyledger - Derived live views and known types for versioned ledger nodes."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyledger")
except PackageNotFoundError:
    __version__ = "0+local"
from pyledger._memo import MemoCache, memoize
from pyledger.api import CapabilityProbe, ConstantReader, LedgerApi, StorageQuery, TypeRegistry
from pyledger.client import LedgerDeriveClient
from pyledger.config import LedgerConfig
from pyledger.exceptions import (
    LedgerApiError,
    LedgerConfigError,
    LedgerError,
    LedgerStreamError,
)
from pyledger.known import (
    BoundedRange,
    OpenRange,
    VersionOverrideTable,
    get_spec_types,
    resolve_overrides,
)
from pyledger.models import DerivedElectionsInfo, ElectionStrategy
from pyledger.state.store import StorageStore
from pyledger.stream import LiveStream, Subject, Subscription, combine_latest

__all__ = [
    "__version__",
    "BoundedRange",
    "CapabilityProbe",
    "ConstantReader",
    "DerivedElectionsInfo",
    "ElectionStrategy",
    "LedgerApi",
    "LedgerApiError",
    "LedgerConfig",
    "LedgerConfigError",
    "LedgerDeriveClient",
    "LedgerError",
    "LedgerStreamError",
    "LiveStream",
    "MemoCache",
    "OpenRange",
    "StorageQuery",
    "StorageStore",
    "Subject",
    "Subscription",
    "TypeRegistry",
    "VersionOverrideTable",
    "combine_latest",
    "get_spec_types",
    "memoize",
    "resolve_overrides",
]
