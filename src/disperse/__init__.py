"""
disperse

Plans bulk ledger transfers as capacity-bounded transaction bundles:
an optional provisioning phase for recipients whose accounts are missing,
followed by the transfer bundles themselves.
"""

__version__ = "0.1.0"

from disperse.core.bundle import BatchConfig, Bundle, BundleKind, OrchestrationResult
from disperse.core.request import TransferRequest
from disperse.engine.orchestrator import DisperseOrchestrator, DisperseRequest
from disperse.engine.dispatcher import BundleDispatcher

__all__ = [
    "BatchConfig",
    "Bundle",
    "BundleKind",
    "OrchestrationResult",
    "TransferRequest",
    "DisperseOrchestrator",
    "DisperseRequest",
    "BundleDispatcher",
]
