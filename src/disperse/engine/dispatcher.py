"""
Bundle Dispatcher - executes a plan in dependency order.

Sends every provisioning bundle before any transfer bundle, a chunk of
bundles at a time. Signing, submission and confirmation happen inside the
caller-supplied ``send`` coroutine.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

import structlog

from disperse.config import DisperseConfig, get_config
from disperse.core.bundle import Bundle, BundleKind, BundleStatus, OrchestrationResult
from disperse.core.errors import DispatchError
from disperse.utils import chunk

logger = structlog.get_logger(__name__)

SendBundle = Callable[[Bundle], Awaitable[str]]


@dataclass
class DispatchReport:
    """Outcome of dispatching a plan."""

    confirmed: List[Bundle] = field(default_factory=list)
    failed: List[Bundle] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def confirmed_of(self, kind: BundleKind) -> List[Bundle]:
        return [b for b in self.confirmed if b.kind == kind]

    def failed_of(self, kind: BundleKind) -> List[Bundle]:
        return [b for b in self.failed if b.kind == kind]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "confirmed": [b.to_dict() for b in self.confirmed],
            "failed": [b.to_dict() for b in self.failed],
        }


class BundleDispatcher:
    """
    Sends planned bundles through a caller-supplied coroutine.

    ``send`` must return only once the bundle is confirmed, and return its
    transaction id. A failed provisioning bundle stops the dispatch before
    the transfer phase; failed transfer bundles are recorded and the rest
    are still sent.
    """

    def __init__(
        self,
        send: SendBundle,
        config: Optional[DisperseConfig] = None,
        chunk_size: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            send: Coroutine signing, submitting and confirming one bundle
            config: Disperse configuration
            chunk_size: Bundles sent concurrently (config default if not provided)
            delay_seconds: Pause between chunks (config default if not provided)
        """
        self.send = send
        self.config = config or get_config()
        self.chunk_size = (
            chunk_size if chunk_size is not None else self.config.dispatch_chunk_size
        )
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else self.config.dispatch_delay_seconds
        )

        self._on_bundle_confirmed: Optional[Callable[[Bundle], None]] = None
        self._on_bundle_failed: Optional[Callable[[Bundle], None]] = None

    async def _send_one(self, bundle: Bundle) -> None:
        bundle.mark_submitted()
        try:
            tx_id = await self.send(bundle)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            bundle.mark_failed(str(e))
            logger.error(
                "bundle_failed",
                kind=bundle.kind.value,
                index=bundle.index,
                error=str(e),
            )
            if self._on_bundle_failed:
                self._on_bundle_failed(bundle)
            return

        bundle.mark_confirmed(tx_id)
        logger.info(
            "bundle_confirmed",
            kind=bundle.kind.value,
            index=bundle.index,
            transaction_id=tx_id,
        )
        if self._on_bundle_confirmed:
            self._on_bundle_confirmed(bundle)

    async def _dispatch_phase(self, bundles: List[Bundle], report: DispatchReport) -> None:
        chunks = chunk(bundles, self.chunk_size)

        for i, bundle_chunk in enumerate(chunks):
            logger.debug(
                "dispatching_chunk",
                chunk=i + 1,
                chunk_count=len(chunks),
                size=len(bundle_chunk),
            )
            await asyncio.gather(*(self._send_one(b) for b in bundle_chunk))

            for bundle in bundle_chunk:
                if bundle.status == BundleStatus.CONFIRMED:
                    report.confirmed.append(bundle)
                else:
                    report.failed.append(bundle)

            if i < len(chunks) - 1 and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)

    async def dispatch(self, result: OrchestrationResult) -> DispatchReport:
        """
        Send a plan: provisioning bundles to completion, then transfer bundles.

        Args:
            result: Plan returned by the orchestrator

        Returns:
            Confirmed and failed bundles

        Raises:
            DispatchError: If a provisioning bundle failed
        """
        report = DispatchReport()

        if result.provisioning_bundles:
            logger.info("provisioning_phase_started", bundle_count=len(result.provisioning_bundles))
            await self._dispatch_phase(result.provisioning_bundles, report)

            failed = report.failed_of(BundleKind.PROVISIONING)
            if failed:
                raise DispatchError(
                    f"{len(failed)} provisioning bundle(s) failed; transfers not sent"
                )

        logger.info("transfer_phase_started", bundle_count=len(result.transfer_bundles))
        await self._dispatch_phase(result.transfer_bundles, report)

        logger.info(
            "dispatch_completed",
            confirmed=len(report.confirmed),
            failed=len(report.failed),
        )
        return report

    # Callback registration

    def on_bundle_confirmed(self, callback: Callable[[Bundle], None]) -> None:
        """Register callback for bundle confirmation events."""
        self._on_bundle_confirmed = callback

    def on_bundle_failed(self, callback: Callable[[Bundle], None]) -> None:
        """Register callback for bundle failure events."""
        self._on_bundle_failed = callback
