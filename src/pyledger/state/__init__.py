"""In-memory node storage.

:class:`~pyledger.state.store.StorageStore` holds storage values, constants
and module sections in memory and serves them through the
:mod:`pyledger.api` protocols, so the derive layer can run without a node.
"""
