# commerce_kernel/__init__.py
"""
commerce_kernel
──────────────────────────────────────────────────────────────
An async SQLAlchemy kernel for e-commerce services.
Provides:
    - Nested transaction coordination (TransactionCoordinator)
    - Engine / session lifecycle
    - Explicit repositories bound to a transaction handle
    - Commit-deferred domain events
    - Feature flags and settings
──────────────────────────────────────────────────────────────
"""

__version__ = "0.1.0"

from commerce_kernel.db.tx import TransactionContext, TransactionCoordinator, transactional
from commerce_kernel.errors import ErrorType, KernelError
from commerce_kernel.events.bus import EventBus
from commerce_kernel.bootstrap import Kernel, build_kernel

__all__ = [
    "TransactionContext",
    "TransactionCoordinator",
    "transactional",
    "ErrorType",
    "KernelError",
    "EventBus",
    "Kernel",
    "build_kernel",
]
