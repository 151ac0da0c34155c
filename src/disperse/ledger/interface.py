"""
Abstract interface for ledger clients.

Defines the contract between the planning engine and a concrete ledger:
account lookups plus the builders that turn transfers into operations.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional


class LedgerClient(ABC):
    """
    Abstract interface for ledger access.

    The engine treats every builder as a pure, synchronous function and
    never inspects the operations they return. Only ``lookup_account``
    performs I/O.

    ``resource_id`` is the asset the transfer builder moves, if the client
    is bound to one.
    """

    resource_id: Optional[str] = None

    async def connect(self) -> None:
        """Establish connection to the ledger backend, if any."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the ledger backend, if any."""
        pass

    @abstractmethod
    async def lookup_account(
        self,
        owner: str,
        resource_id: Optional[str] = None,
    ) -> bool:
        """
        Check whether a recipient account already exists.

        Args:
            owner: Recipient address
            resource_id: Optional asset/mint identifier the account is for

        Returns:
            True if the account exists and needs no provisioning

        Raises:
            LedgerConnectionError: If the lookup cannot complete
        """
        pass

    @abstractmethod
    def build_transfer_operation(self, sender: str, recipient: str, amount: int) -> Any:
        """
        Build the operation moving ``amount`` from sender to recipient.

        Args:
            sender: Sender address
            recipient: Recipient address
            amount: Amount in the smallest unit

        Returns:
            Opaque operation
        """
        pass

    @abstractmethod
    def build_provisioning_operation(
        self,
        payer: str,
        owner: str,
        resource_id: Optional[str] = None,
    ) -> Any:
        """
        Build the operation creating the owner's account.

        Args:
            payer: Address paying for the account
            owner: Recipient address the account belongs to
            resource_id: Optional asset/mint identifier

        Returns:
            Opaque operation
        """
        pass

    @abstractmethod
    def build_annotation_operation(self, text: str, signer: str) -> Any:
        """
        Build the trailing annotation operation of a transfer bundle.

        Args:
            text: Annotation text
            signer: Address signing the annotation

        Returns:
            Opaque operation
        """
        pass

    @abstractmethod
    def assemble(self, operations: List[Any]) -> Any:
        """
        Assemble operations into one unsigned ledger transaction.

        Args:
            operations: Operations in execution order

        Returns:
            Unsigned transaction
        """
        pass


class LedgerConnectionError(Exception):
    """Raised when the ledger backend cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
