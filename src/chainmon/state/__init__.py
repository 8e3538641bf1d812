"""State/store layer.

This package is the single source of truth for how chain tips reported by
the source adapters are merged into a best-known state per chain, and how
changes are fanned out to live subscribers.
"""
