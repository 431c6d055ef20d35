"""Client configuration for pyledger."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyledger.exceptions import LedgerConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise LedgerConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class LedgerConfig:
    """Derive-layer configuration.

    Parameters
    ----------
    spec_name : str or None
        Chain spec name reported by the node (e.g. ``"rococo"``). Used to
        look up the known type-override table.
    spec_version : int or None
        Runtime spec version of the connected node.
    elections_section : str
        Storage section name of the legacy counted-set election module.
    phragmen_section : str
        Storage section name of the ranked-ballot election module. When
        present on the node it always takes precedence.
    strict_tables : bool
        Validate override tables for gaps when they are built.
    """

    spec_name: str | None = None
    spec_version: int | None = None
    elections_section: str = "elections"
    phragmen_section: str = "electionsPhragmen"
    strict_tables: bool = True

    @classmethod
    def from_env(cls, **overrides: Any) -> LedgerConfig:
        """Create configuration from ``LEDGER_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "LEDGER_SPEC_NAME": "spec_name",
            "LEDGER_ELECTIONS_SECTION": "elections_section",
            "LEDGER_PHRAGMEN_SECTION": "phragmen_section",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        version_env = env.get("LEDGER_SPEC_VERSION")
        if version_env is not None and "spec_version" not in overrides:
            config_kwargs["spec_version"] = _env_int("LEDGER_SPEC_VERSION", version_env)

        if "strict_tables" not in overrides:
            config_kwargs["strict_tables"] = _env_bool(env.get("LEDGER_STRICT_TABLES"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
