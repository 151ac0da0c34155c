"""
Planning Engine module.

Contains the bundle packer, the account existence filter, the two-phase
orchestrator and the dispatcher that executes a plan in order.
"""

from disperse.engine.packer import BundlePacker, pack
from disperse.engine.existence import ExistenceFilter
from disperse.engine.orchestrator import (
    DisperseOrchestrator,
    DisperseRequest,
    TransferEntry,
    coerce_request,
)
from disperse.engine.dispatcher import BundleDispatcher, DispatchReport

__all__ = [
    "BundlePacker",
    "pack",
    "ExistenceFilter",
    "DisperseOrchestrator",
    "DisperseRequest",
    "TransferEntry",
    "coerce_request",
    "BundleDispatcher",
    "DispatchReport",
]
