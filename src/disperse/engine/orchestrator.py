"""
Two-Phase Orchestrator.

Plans a bulk transfer as provisioning bundles (accounts the recipients are
missing) followed by transfer bundles. The caller must execute and confirm
every provisioning bundle before submitting any transfer bundle.
"""

from typing import Any, List, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from disperse.config import DisperseConfig, get_config
from disperse.core.bundle import BatchConfig, Bundle, BundleKind, OrchestrationResult
from disperse.core.errors import ConfigurationError
from disperse.core.request import (
    TransferRequest,
    TransferSpec,
    normalize,
    recipients_of,
    transfer_spec_from_config,
)
from disperse.engine.existence import ExistenceFilter
from disperse.engine.packer import pack
from disperse.ledger.interface import LedgerClient

logger = structlog.get_logger(__name__)


class TransferEntry(BaseModel):
    """One entry of an explicit transfer list."""

    recipient: str
    amount: int


class DisperseRequest(BaseModel):
    """
    Unified caller configuration for a bulk transfer.

    Exactly one of ``transfers`` or (``recipients`` + ``fixed_amount``) must
    be given. Unset capacities and annotation text fall back to
    DisperseConfig.
    """

    sender: str
    resource_id: Optional[str] = None

    transfers: Optional[List[TransferEntry]] = None
    recipients: Optional[List[str]] = None
    fixed_amount: Optional[int] = None

    provisioning_capacity: Optional[int] = None
    transfer_capacity: Optional[int] = None
    annotation_text: Optional[str] = None

    def transfer_spec(self) -> TransferSpec:
        """Build the input-mode variant for this request."""
        return transfer_spec_from_config(
            transfers=self.transfers,
            recipients=self.recipients,
            fixed_amount=self.fixed_amount,
        )


RequestLike = Union[DisperseRequest, Mapping[str, Any]]


def coerce_request(request: RequestLike) -> DisperseRequest:
    """
    Validate a request mapping into a DisperseRequest.

    Raises:
        ConfigurationError: If a field is missing or has the wrong type
    """
    if isinstance(request, DisperseRequest):
        return request
    try:
        return DisperseRequest.model_validate(dict(request))
    except ValidationError as e:
        raise ConfigurationError(f"invalid disperse request: {e}") from e


class DisperseOrchestrator:
    """
    Composes the existence filter, normalizer and packer into bundle plans.

    Usage:
        ```python
        orchestrator = DisperseOrchestrator(client)
        result = await orchestrator.plan({
            "sender": "addr1...",
            "recipients": ["addr1...", "addr1..."],
            "fixed_amount": 2_000_000,
        })
        ```
    """

    def __init__(
        self,
        client: LedgerClient,
        config: Optional[DisperseConfig] = None,
        existence_filter: Optional[ExistenceFilter] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Ledger client used for lookups and operation builders
            config: Disperse configuration
            existence_filter: Custom filter (created from the client if not provided)
        """
        self.client = client
        self.config = config or get_config()
        self.existence_filter = existence_filter or ExistenceFilter(client, config=self.config)

    def _resource_id(self, request: DisperseRequest) -> Optional[str]:
        """Resolve the asset moved by this request against the client binding."""
        bound = self.client.resource_id
        if request.resource_id is None:
            return bound
        if request.resource_id != bound:
            raise ConfigurationError(
                f"request resource {request.resource_id!r} does not match the "
                f"resource the ledger client transfers ({bound!r})"
            )
        return request.resource_id

    def _provisioning_config(self, request: DisperseRequest) -> BatchConfig:
        capacity = request.provisioning_capacity
        if capacity is None:
            capacity = self.config.provisioning_capacity
        return BatchConfig(capacity=capacity)

    def _transfer_config(self, request: DisperseRequest) -> BatchConfig:
        capacity = request.transfer_capacity
        if capacity is None:
            capacity = self.config.transfer_capacity
        # Validate the capacity before building the marker
        BatchConfig(capacity=capacity)

        text = request.annotation_text
        if text is None:
            text = self.config.annotation_text
        marker = self.client.build_annotation_operation(text, request.sender)
        return BatchConfig(capacity=capacity, trailing_marker=marker)

    async def _pack_provisioning(
        self,
        request: DisperseRequest,
        recipients: List[str],
        batch_config: BatchConfig,
        resource_id: Optional[str],
    ) -> List[Bundle]:
        missing = await self.existence_filter.filter_unprovisioned(
            recipients,
            resource_id=resource_id,
        )

        def build(owner: str) -> Any:
            return self.client.build_provisioning_operation(
                request.sender,
                owner,
                resource_id,
            )

        return pack(
            missing,
            batch_config,
            build=build,
            assemble=self.client.assemble,
            kind=BundleKind.PROVISIONING,
        )

    def _pack_transfers(
        self,
        request: DisperseRequest,
        spec: TransferSpec,
        batch_config: BatchConfig,
    ) -> List[Bundle]:
        transfers = normalize(spec)

        def build(transfer: TransferRequest) -> Any:
            return self.client.build_transfer_operation(
                request.sender,
                transfer.recipient,
                transfer.amount,
            )

        return pack(
            transfers,
            batch_config,
            build=build,
            assemble=self.client.assemble,
            kind=BundleKind.TRANSFER,
        )

    async def plan(self, request: RequestLike) -> OrchestrationResult:
        """
        Plan provisioning and transfer bundles.

        Args:
            request: DisperseRequest or an equivalent mapping

        Returns:
            Provisioning bundles and transfer bundles

        Raises:
            ConfigurationError: If no valid transfer specification is given
            CapacityError: If a capacity is below 1 (before any lookup)
            LookupFailure: If any account lookup fails
        """
        request = coerce_request(request)
        spec = request.transfer_spec()
        resource_id = self._resource_id(request)
        provisioning_config = self._provisioning_config(request)
        transfer_config = self._transfer_config(request)

        logger.info(
            "planning_started",
            mode=type(spec).__name__,
            provisioning_capacity=provisioning_config.capacity,
            transfer_capacity=transfer_config.capacity,
        )

        provisioning = await self._pack_provisioning(
            request,
            recipients_of(spec),
            provisioning_config,
            resource_id,
        )
        transfers = self._pack_transfers(request, spec, transfer_config)

        result = OrchestrationResult(
            provisioning_bundles=provisioning,
            transfer_bundles=transfers,
        )

        logger.info(
            "planning_completed",
            provisioning_bundles=len(provisioning),
            transfer_bundles=len(transfers),
        )

        return result

    async def plan_provisioning(self, request: RequestLike) -> List[Bundle]:
        """
        Plan only the provisioning bundles.

        A bare ``recipients`` list is enough here; no amount is needed.

        Raises:
            ConfigurationError: If no recipient list can be derived
            CapacityError: If the provisioning capacity is below 1
            LookupFailure: If any account lookup fails
        """
        request = coerce_request(request)
        if request.transfers is None and request.recipients is not None:
            recipients = list(request.recipients)
        else:
            recipients = recipients_of(request.transfer_spec())
        resource_id = self._resource_id(request)
        provisioning_config = self._provisioning_config(request)
        return await self._pack_provisioning(
            request,
            recipients,
            provisioning_config,
            resource_id,
        )

    def plan_transfers(self, request: RequestLike) -> List[Bundle]:
        """
        Plan only the transfer bundles, without account lookups.

        Use when every recipient account is known to exist.

        Raises:
            ConfigurationError: If no valid transfer specification is given
            CapacityError: If the transfer capacity is below 1
        """
        request = coerce_request(request)
        spec = request.transfer_spec()
        self._resource_id(request)
        transfer_config = self._transfer_config(request)
        return self._pack_transfers(request, spec, transfer_config)
