"""
SpendWise - Source Package

The client-side core of a personal budgeting app: a key-scoped persistent
store for transactions and budgets, and the workflow that turns a typed
transaction into a stored, optionally AI-reviewed, ledger entry.

DESIGN PRINCIPLES:
1. AI suggests → User approves → Ledger stores
2. Memory and storage agree at bind and at every write
3. Every record belongs to exactly one identity
4. A failed suggestion never blocks a save
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "SpendWise Team"
