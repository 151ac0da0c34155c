"""
Core disperse components.

This module contains the data model for transfer requests, bundles and
planning results, plus the error taxonomy.
"""

from disperse.core.bundle import (
    BatchConfig,
    Bundle,
    BundleKind,
    BundleStatus,
    OrchestrationResult,
)
from disperse.core.errors import (
    CapacityError,
    ConfigurationError,
    DispatchError,
    DisperseError,
    LookupFailure,
)
from disperse.core.request import (
    ByRecipientsAndFixedAmount,
    ByTransferList,
    TransferRequest,
    TransferSpec,
    normalize,
    recipients_of,
    transfer_spec_from_config,
)

__all__ = [
    "BatchConfig",
    "Bundle",
    "BundleKind",
    "BundleStatus",
    "OrchestrationResult",
    "CapacityError",
    "ConfigurationError",
    "DispatchError",
    "DisperseError",
    "LookupFailure",
    "ByRecipientsAndFixedAmount",
    "ByTransferList",
    "TransferRequest",
    "TransferSpec",
    "normalize",
    "recipients_of",
    "transfer_spec_from_config",
]
