"""
Existence Filter - finds recipients that need provisioning.

Looks every recipient up concurrently and keeps, in input order, those
whose account does not exist yet.
"""

import asyncio
from typing import List, Optional, Sequence

import structlog

from disperse.config import DisperseConfig, get_config
from disperse.core.errors import LookupFailure
from disperse.ledger.interface import LedgerClient

logger = structlog.get_logger(__name__)


class ExistenceFilter:
    """
    Filters a recipient list down to the unprovisioned subset.

    One lookup is issued per recipient, at most ``concurrency`` at a time.
    A single failed lookup fails the whole call.
    """

    def __init__(
        self,
        client: LedgerClient,
        concurrency: Optional[int] = None,
        config: Optional[DisperseConfig] = None,
    ):
        """
        Initialize the filter.

        Args:
            client: Ledger client answering account lookups
            concurrency: Maximum lookups in flight (config default if not provided)
            config: Disperse configuration
        """
        self.client = client
        self.config = config or get_config()
        self.concurrency = (
            concurrency if concurrency is not None else self.config.lookup_concurrency
        )

        if self.concurrency < 1:
            raise ValueError(f"concurrency must be positive, got {self.concurrency}")

    async def filter_unprovisioned(
        self,
        recipients: Sequence[str],
        resource_id: Optional[str] = None,
    ) -> List[str]:
        """
        Get the recipients whose account does not exist.

        Args:
            recipients: Recipient addresses in input order
            resource_id: Asset/mint identifier the accounts are for

        Returns:
            Distinct unprovisioned recipients, in first-occurrence order

        Raises:
            LookupFailure: If any lookup fails
        """
        # One lookup per distinct recipient, first occurrence wins
        recipients = list(dict.fromkeys(recipients))
        if not recipients:
            return []

        # Indexed by input position; completion order is irrelevant
        exists: List[Optional[bool]] = [None] * len(recipients)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def lookup(index: int, recipient: str) -> None:
            async with semaphore:
                try:
                    exists[index] = await self.client.lookup_account(recipient, resource_id)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    raise LookupFailure(
                        f"account lookup failed for {recipient}: {e}",
                        recipient=recipient,
                    ) from e

        tasks = [
            asyncio.ensure_future(lookup(i, recipient))
            for i, recipient in enumerate(recipients)
        ]

        try:
            await asyncio.gather(*tasks)
        except LookupFailure as e:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error("existence_lookup_failed", recipient=e.recipient, error=str(e))
            raise

        missing = [r for r, found in zip(recipients, exists) if not found]

        logger.info(
            "existence_filter_completed",
            recipient_count=len(recipients),
            unprovisioned_count=len(missing),
        )

        return missing
