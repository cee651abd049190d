"""Scoped reactive state package."""

from spendwise.state.cell import ScopedCell, scoped_key

__all__ = ["ScopedCell", "scoped_key"]
