"""
Account Lifecycle Engine

State-driven bank accounts with PIN-gated access, layered monthly services,
pluggable interest policies and batch month-end settlement.

All state lives in memory and the engine assumes a single thread of control:
accounts, the registry and settlement totals carry no locking.
"""

__version__ = "1.0.0"
