"""State/store layer.

This package is the single source of truth for how live deltas and bulk
fetches are merged into the per-domain, ordered, in-memory collections.
"""
