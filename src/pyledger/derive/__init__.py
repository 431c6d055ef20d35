"""Derived queries combining several storage subscriptions."""

from pyledger.derive import elections

__all__ = ["elections"]
