"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import pytest
from pycardano import (
    Address,
    Network,
    PaymentSigningKey,
    PaymentVerificationKey,
)

from disperse.config import DisperseConfig, NetworkType
from disperse.ledger.interface import LedgerClient, LedgerConnectionError


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> DisperseConfig:
    """Create a test configuration."""
    return DisperseConfig(
        network=NetworkType.PREPROD,
        blockfrost_project_id="test_project_id",
        provisioning_capacity=12,
        transfer_capacity=18,
        annotation_text="Test bulk transfer",
        lookup_concurrency=4,
        dispatch_chunk_size=2,
        dispatch_delay_seconds=0,
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_test_address(index: int = 0) -> str:
    """Generate an opaque test recipient address."""
    return f"addr_test_recipient_{index:04d}"


def generate_test_addresses(count: int) -> List[str]:
    return [generate_test_address(i) for i in range(count)]


def generate_cardano_address() -> str:
    """Generate a real testnet address from a fresh key."""
    signing_key = PaymentSigningKey.generate()
    verification_key = PaymentVerificationKey.from_signing_key(signing_key)
    return str(Address(payment_part=verification_key.hash(), network=Network.TESTNET))


SENDER = "addr_test_sender"


# ============================================================================
# Mock Ledger Client
# ============================================================================

class MockLedgerClient(LedgerClient):
    """
    In-memory ledger client for testing.

    Operations are plain tuples so tests can assert on them directly.
    """

    def __init__(
        self,
        existing: Iterable[str] = (),
        failing: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        resource_id: Optional[str] = None,
    ):
        self.existing = set(existing)
        self.resource_id = resource_id
        self.failing = set(failing)
        self.delays = delays or {}
        self.lookups: List[tuple] = []
        self.completed_lookups: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def lookup_account(self, owner: str, resource_id: Optional[str] = None) -> bool:
        self.lookups.append((owner, resource_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(owner, 0))
            if owner in self.failing:
                raise LedgerConnectionError(f"lookup failed for {owner}", status_code=500)
            self.completed_lookups.append(owner)
            return owner in self.existing
        finally:
            self.in_flight -= 1

    def build_transfer_operation(self, sender: str, recipient: str, amount: int) -> Any:
        return ("transfer", sender, recipient, amount)

    def build_provisioning_operation(
        self,
        payer: str,
        owner: str,
        resource_id: Optional[str] = None,
    ) -> Any:
        return ("provision", payer, owner, resource_id)

    def build_annotation_operation(self, text: str, signer: str) -> Any:
        return ("memo", text, signer)

    def assemble(self, operations: List[Any]) -> Any:
        return {"operations": list(operations)}


@pytest.fixture
def mock_client() -> MockLedgerClient:
    """Create a mock ledger client where no account exists."""
    return MockLedgerClient()


@pytest.fixture
def make_client():
    """Factory for mock ledger clients with existing/failing accounts."""
    return MockLedgerClient


@pytest.fixture
def cardano_address():
    """Factory for real testnet addresses."""
    return generate_cardano_address


@pytest.fixture
def recipients() -> List[str]:
    return generate_test_addresses(3)
