"""
Cardano ledger client.

Builds transfer bundles with PyCardano and answers account lookups via the
Blockfrost API. Bundles are assembled into unsigned transactions carrying
outputs, a CIP-20 message and the required signer; inputs, fee and
witnesses are added by the signing stage.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

import httpx
import structlog

from pycardano import (
    Address,
    AlonzoMetadata,
    Asset,
    AssetName,
    AuxiliaryData,
    Metadata,
    MultiAsset,
    ScriptHash,
    Transaction,
    TransactionBody,
    TransactionOutput,
    TransactionWitnessSet,
    Value,
    VerificationKeyHash,
)

from disperse.config import DisperseConfig, get_config
from disperse.ledger.interface import LedgerClient, LedgerConnectionError

logger = structlog.get_logger(__name__)

# CIP-20 transaction message label
MESSAGE_LABEL = 674
MESSAGE_LINE_BYTES = 64

POLICY_ID_HEX_LENGTH = 56


def split_message(text: str, limit: int = MESSAGE_LINE_BYTES) -> List[str]:
    """
    Split a message into CIP-20 lines of at most ``limit`` UTF-8 bytes.

    Characters are never split across lines.
    """
    lines = []
    current = ""
    for char in text:
        if len((current + char).encode("utf-8")) > limit:
            lines.append(current)
            current = char
        else:
            current += char
    if current or not lines:
        lines.append(current)
    return lines


@dataclass(frozen=True)
class MessageAnnotation:
    """
    Trailing annotation of a transfer bundle.

    Attributes:
        lines: CIP-20 message lines
        signer: Address whose key must sign the transaction
    """

    lines: tuple
    signer: Address

    def to_metadata(self) -> Metadata:
        return Metadata({MESSAGE_LABEL: {"msg": list(self.lines)}})


def parse_asset_unit(unit: str, quantity: int = 0) -> MultiAsset:
    """
    Parse a Blockfrost asset unit (policy id hex + asset name hex).

    Returns:
        MultiAsset holding ``quantity`` of the asset
    """
    if len(unit) < POLICY_ID_HEX_LENGTH:
        raise ValueError(f"invalid asset unit: {unit}")
    policy_id = ScriptHash.from_primitive(unit[:POLICY_ID_HEX_LENGTH])
    asset_name = AssetName(bytes.fromhex(unit[POLICY_ID_HEX_LENGTH:]))
    return MultiAsset({policy_id: Asset({asset_name: quantity})})


class CardanoLedgerClient(LedgerClient):
    """
    Ledger client for Cardano.

    Transfers are transaction outputs (lovelace, or ``min_output_lovelace``
    plus a native asset when a ``resource_id`` unit is configured).
    Provisioning activates an address that has never appeared on chain by
    seeding it with ``provisioning_lovelace``. A Cardano address needs no
    per-asset account, so lookups check address existence only, in asset
    mode too.
    """

    def __init__(
        self,
        config: Optional[DisperseConfig] = None,
        resource_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Cardano client.

        Args:
            config: Disperse configuration. Uses global config if not provided.
            resource_id: Asset unit transferred instead of lovelace
            transport: Custom HTTP transport for the Blockfrost client
        """
        self.config = config or get_config()
        self.resource_id = resource_id
        self.base_url = self.config.blockfrost_url
        self.project_id = self.config.blockfrost_project_id
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if resource_id:
            # Fail on malformed units before any bundle is built
            parse_asset_unit(resource_id)

    @property
    def headers(self) -> dict:
        """Get request headers with API key."""
        return {
            "project_id": self.project_id or "",
            "Content-Type": "application/json",
        }

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        if not self.project_id:
            raise LedgerConnectionError("Blockfrost project ID not configured")

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=30.0,
            transport=self._transport,
        )

        try:
            response = await self._client.get("/health")
            if response.status_code != 200:
                raise LedgerConnectionError(
                    f"Blockfrost health check failed: {response.text}",
                    status_code=response.status_code,
                )
            logger.info("blockfrost_connected", base_url=self.base_url)
        except httpx.RequestError as e:
            raise LedgerConnectionError(f"Failed to connect to Blockfrost: {e}")

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("blockfrost_disconnected")

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make an API request. Returns None for 404."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("blockfrost_request_error", path=path, error=str(e))
            raise LedgerConnectionError(f"Blockfrost request failed: {e}")

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            logger.error(
                "blockfrost_request_failed",
                path=path,
                status=response.status_code,
                error=response.text,
            )
            raise LedgerConnectionError(
                f"Blockfrost API error: {response.text}",
                status_code=response.status_code,
            )

        return response.json()

    async def lookup_account(
        self,
        owner: str,
        resource_id: Optional[str] = None,
    ) -> bool:
        """Check whether the owner address has appeared on chain."""
        data = await self._request("GET", f"/addresses/{owner}")
        exists = data is not None

        logger.debug("account_lookup", owner=owner[:20] + "...", exists=exists)
        return exists

    def _transfer_value(self, amount: int) -> Value:
        if not self.resource_id:
            return Value(amount)

        return Value(
            self.config.min_output_lovelace,
            parse_asset_unit(self.resource_id, amount),
        )

    def build_transfer_operation(self, sender: str, recipient: str, amount: int) -> TransactionOutput:
        """
        Build a transfer output.

        The sender is not part of an output; it is bound when the signing
        stage selects inputs.
        """
        return TransactionOutput(
            Address.from_primitive(recipient),
            self._transfer_value(amount),
        )

    def build_provisioning_operation(
        self,
        payer: str,
        owner: str,
        resource_id: Optional[str] = None,
    ) -> TransactionOutput:
        """Build an output activating the owner address."""
        return TransactionOutput(
            Address.from_primitive(owner),
            Value(self.config.provisioning_lovelace),
        )

    def build_annotation_operation(self, text: str, signer: str) -> MessageAnnotation:
        """Build a CIP-20 message annotation signed by ``signer``."""
        return MessageAnnotation(
            lines=tuple(split_message(text)),
            signer=Address.from_primitive(signer),
        )

    def assemble(self, operations: List[Any]) -> Transaction:
        """Assemble outputs and an optional annotation into an unsigned transaction."""
        outputs = []
        annotation: Optional[MessageAnnotation] = None

        for operation in operations:
            if isinstance(operation, TransactionOutput):
                outputs.append(operation)
            elif isinstance(operation, MessageAnnotation):
                annotation = operation
            else:
                raise TypeError(f"Unsupported operation: {type(operation).__name__}")

        tx_body = TransactionBody(outputs=outputs)
        auxiliary_data = None

        if annotation is not None:
            auxiliary_data = AuxiliaryData(AlonzoMetadata(metadata=annotation.to_metadata()))
            tx_body.auxiliary_data_hash = auxiliary_data.hash()
            if isinstance(annotation.signer.payment_part, VerificationKeyHash):
                tx_body.required_signers = [annotation.signer.payment_part]

        return Transaction(
            transaction_body=tx_body,
            transaction_witness_set=TransactionWitnessSet(),
            auxiliary_data=auxiliary_data,
        )
