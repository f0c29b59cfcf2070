"""State/store layer.

This package is the single source of truth for how the initial snapshot and
live stream updates are merged into a consistent per-entity state.
"""
