"""
Bundle model.

Represents a group of ledger operations to be executed in a single transaction.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator, List, Optional

from disperse.core.errors import CapacityError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BundleKind(str, Enum):
    """Phase a bundle belongs to."""
    PROVISIONING = "provisioning"   # Creates missing recipient accounts
    TRANSFER = "transfer"           # Moves value to recipients


class BundleStatus(str, Enum):
    """Status of a bundle."""
    PLANNED = "planned"             # Built, not yet handed to the ledger
    SUBMITTED = "submitted"         # Sent by the dispatcher
    CONFIRMED = "confirmed"         # Reported as confirmed
    FAILED = "failed"               # Sending failed


@dataclass(frozen=True)
class BatchConfig:
    """
    Packing parameters for one packing call.

    Attributes:
        capacity: Maximum number of content operations per bundle
        trailing_marker: Operation appended to every bundle after its content
    """

    capacity: int
    trailing_marker: Optional[Any] = None

    def __post_init__(self):
        if (
            isinstance(self.capacity, bool)
            or not isinstance(self.capacity, int)
            or self.capacity < 1
        ):
            raise CapacityError(self.capacity)


@dataclass
class Bundle:
    """
    An ordered group of operations bounded by a capacity.

    The marker, when present, is not part of ``content`` and does not count
    toward capacity; ``operations`` returns it as the last element.

    Attributes:
        kind: Provisioning or transfer phase
        index: Position of the bundle within its phase
        content: Content operations, in input order
        marker: Optional trailing operation
        sources: Items the content operations were built from (same order)
        payload: Ledger-assembled transaction, if an assembler was supplied
    """

    kind: BundleKind
    index: int
    content: List[Any] = field(default_factory=list)
    marker: Optional[Any] = None
    sources: List[Any] = field(default_factory=list)
    payload: Optional[Any] = None

    bundle_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: BundleStatus = BundleStatus.PLANNED
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        """Validate after initialization."""
        if isinstance(self.kind, str):
            self.kind = BundleKind(self.kind)
        if isinstance(self.status, str):
            self.status = BundleStatus(self.status)

    @property
    def operations(self) -> List[Any]:
        """All operations in execution order, marker last."""
        if self.marker is None:
            return list(self.content)
        return [*self.content, self.marker]

    @property
    def size(self) -> int:
        """Number of content operations."""
        return len(self.content)

    @property
    def has_marker(self) -> bool:
        return self.marker is not None

    def mark_submitted(self, transaction_id: Optional[str] = None) -> None:
        """Mark bundle as submitted."""
        self.status = BundleStatus.SUBMITTED
        self.transaction_id = transaction_id
        self.updated_at = _utcnow()

    def mark_confirmed(self, transaction_id: Optional[str] = None) -> None:
        """Mark bundle as confirmed."""
        self.status = BundleStatus.CONFIRMED
        if transaction_id is not None:
            self.transaction_id = transaction_id
        self.updated_at = _utcnow()

    def mark_failed(self, error: str) -> None:
        """Mark bundle as failed."""
        self.status = BundleStatus.FAILED
        self.error_message = error
        self.updated_at = _utcnow()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        sources = []
        for source in self.sources:
            sources.append(source.to_dict() if hasattr(source, "to_dict") else source)
        return {
            "bundle_id": self.bundle_id,
            "kind": self.kind.value,
            "index": self.index,
            "size": self.size,
            "has_marker": self.has_marker,
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "error_message": self.error_message,
            "sources": sources,
        }

    def __repr__(self) -> str:
        return (
            f"Bundle(kind={self.kind.value}, index={self.index}, "
            f"size={self.size}, marker={self.has_marker})"
        )


@dataclass
class OrchestrationResult:
    """
    Both bundle lists of a two-phase plan.

    Every provisioning bundle must be executed and confirmed before any
    transfer bundle is submitted.
    """

    provisioning_bundles: List[Bundle] = field(default_factory=list)
    transfer_bundles: List[Bundle] = field(default_factory=list)

    @property
    def bundles(self) -> Iterator[Bundle]:
        """All bundles in execution order."""
        yield from self.provisioning_bundles
        yield from self.transfer_bundles

    @property
    def is_empty(self) -> bool:
        return not self.provisioning_bundles and not self.transfer_bundles

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "provisioning_bundles": [b.to_dict() for b in self.provisioning_bundles],
            "transfer_bundles": [b.to_dict() for b in self.transfer_bundles],
        }
