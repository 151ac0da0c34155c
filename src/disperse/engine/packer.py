"""
Bundle Packer - groups operations into capacity-bounded bundles.

Walks the input left to right and cuts a bundle every ``capacity``
items, so N items always yield ceil(N / capacity) bundles.
"""

from typing import Any, Callable, Iterable, List, Optional

import structlog

from disperse.core.bundle import BatchConfig, Bundle, BundleKind

logger = structlog.get_logger(__name__)

OperationBuilder = Callable[[Any], Any]
Assembler = Callable[[List[Any]], Any]


def pack(
    items: Iterable[Any],
    config: BatchConfig,
    build: Optional[OperationBuilder] = None,
    assemble: Optional[Assembler] = None,
    kind: BundleKind = BundleKind.TRANSFER,
) -> List[Bundle]:
    """
    Partition items into ordered bundles of at most ``config.capacity``.

    Args:
        items: Items in input order (operations, or sources for ``build``)
        config: Capacity and optional trailing marker
        build: Maps each item to its content operation (identity if omitted)
        assemble: Turns a bundle's operations into its ledger payload
        kind: Phase recorded on the bundles

    Returns:
        Bundles in input order; empty if there are no items
    """
    bundles: List[Bundle] = []
    sources: List[Any] = []
    content: List[Any] = []

    def finalize() -> None:
        nonlocal sources, content
        if not content:
            return
        bundle = Bundle(
            kind=kind,
            index=len(bundles),
            content=content,
            marker=config.trailing_marker,
            sources=sources,
        )
        if assemble is not None:
            bundle.payload = assemble(bundle.operations)
        bundles.append(bundle)
        sources = []
        content = []

    items = list(items)
    last = len(items) - 1

    for i, item in enumerate(items):
        sources.append(item)
        content.append(build(item) if build is not None else item)

        if (i + 1) % config.capacity == 0 or i == last:
            finalize()

    logger.debug(
        "bundles_packed",
        kind=kind.value,
        item_count=len(items),
        bundle_count=len(bundles),
        capacity=config.capacity,
        marker=config.trailing_marker is not None,
    )

    return bundles


class BundlePacker:
    """
    Packs items for one phase with a fixed builder and assembler.

    Usage:
        ```python
        packer = BundlePacker(BatchConfig(capacity=18, trailing_marker=memo),
                              build=to_operation, assemble=client.assemble)
        bundles = packer.pack(requests)
        ```
    """

    def __init__(
        self,
        config: BatchConfig,
        build: Optional[OperationBuilder] = None,
        assemble: Optional[Assembler] = None,
        kind: BundleKind = BundleKind.TRANSFER,
    ):
        self.config = config
        self.build = build
        self.assemble = assemble
        self.kind = kind

    @property
    def capacity(self) -> int:
        return self.config.capacity

    def bundle_count(self, item_count: int) -> int:
        """Number of bundles ``item_count`` items will produce."""
        return -(-item_count // self.config.capacity)

    def pack(self, items: Iterable[Any]) -> List[Bundle]:
        """Pack items into bundles."""
        return pack(
            items,
            self.config,
            build=self.build,
            assemble=self.assemble,
            kind=self.kind,
        )
