"""Custom exception hierarchy for pyledger."""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all pyledger errors."""


class LedgerConfigError(LedgerError):
    """Invalid or missing configuration (including override tables)."""


class LedgerStreamError(LedgerError):
    """A live stream was used after it completed or failed."""


class LedgerApiError(LedgerError):
    """Collaborator-level failure for a storage item or constant."""

    def __init__(
        self,
        message: str,
        *,
        section: str = "",
        item: str = "",
    ) -> None:
        self.section = section
        self.item = item
        super().__init__(message)
