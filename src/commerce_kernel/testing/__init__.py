"""
Testing utilities for commerce-kernel apps.
──────────────────────────────────────────────────────────────
Provides pytest fixtures for isolated async DB sessions and a
recorder for engine-level transaction events.
──────────────────────────────────────────────────────────────
"""
from .fixtures import TransactionLog, coordinator, engine, session_factory, tx_log

__all__ = ["TransactionLog", "coordinator", "engine", "session_factory", "tx_log"]
