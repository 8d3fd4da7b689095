"""Ingestion layer.

Routes decoded live deltas and bulk REST fetches into the domain stores.
"""

__all__: list[str] = []
