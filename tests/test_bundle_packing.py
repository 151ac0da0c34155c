"""
Test suite for bundle packing.

Tests the fixed-capacity partition of operations into bundles and the
trailing marker handling.
"""

import math

import pytest

from disperse.core.bundle import BatchConfig, Bundle, BundleKind, BundleStatus
from disperse.core.errors import CapacityError, ConfigurationError
from disperse.engine.packer import BundlePacker, pack


MARKER = ("memo", "Bulk transfer", "sender")


# ============================================================================
# Test BatchConfig
# ============================================================================

class TestBatchConfig:
    """Tests for packing parameter validation."""

    @pytest.mark.parametrize("capacity", [0, -1, -18])
    def test_non_positive_capacity_rejected(self, capacity):
        with pytest.raises(CapacityError) as exc_info:
            BatchConfig(capacity=capacity)

        assert exc_info.value.capacity == capacity

    @pytest.mark.parametrize("capacity", [1.5, "12", None, True])
    def test_non_integer_capacity_rejected(self, capacity):
        with pytest.raises(CapacityError):
            BatchConfig(capacity=capacity)

    def test_capacity_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            BatchConfig(capacity=0)

    def test_marker_defaults_to_none(self):
        assert BatchConfig(capacity=1).trailing_marker is None


# ============================================================================
# Test Partitioning
# ============================================================================

class TestPack:
    """Tests for the greedy left-to-right partition."""

    @pytest.mark.parametrize(
        "count,capacity",
        [(0, 1), (1, 1), (5, 1), (1, 18), (17, 18), (18, 18), (19, 18), (36, 18), (37, 12)],
    )
    def test_bundle_count_and_sizes(self, count, capacity):
        bundles = pack(range(count), BatchConfig(capacity=capacity))

        assert len(bundles) == math.ceil(count / capacity)
        for bundle in bundles[:-1]:
            assert bundle.size == capacity
        if bundles:
            expected_last = count % capacity or capacity
            assert bundles[-1].size == expected_last

    def test_empty_input_yields_no_bundles(self):
        assert pack([], BatchConfig(capacity=5, trailing_marker=MARKER)) == []

    def test_order_preserved(self):
        bundles = pack(range(10), BatchConfig(capacity=4))

        assert [b.content for b in bundles] == [[0, 1, 2, 3], [4, 5, 6, 7], [8, 9]]
        assert [b.index for b in bundles] == [0, 1, 2]

    def test_hundred_transfers_with_marker(self):
        """100 requests at capacity 18 give 5 full bundles and one of 10."""
        bundles = pack(range(100), BatchConfig(capacity=18, trailing_marker=MARKER))

        assert [b.size for b in bundles] == [18, 18, 18, 18, 18, 10]
        assert [len(b.operations) for b in bundles] == [19, 19, 19, 19, 19, 11]

    def test_twenty_five_provisioning_without_marker(self):
        bundles = pack(
            range(25),
            BatchConfig(capacity=12),
            kind=BundleKind.PROVISIONING,
        )

        assert [b.size for b in bundles] == [12, 12, 1]
        assert all(not b.has_marker for b in bundles)
        assert all(b.kind == BundleKind.PROVISIONING for b in bundles)

    def test_marker_once_and_last(self):
        bundles = pack(range(7), BatchConfig(capacity=3, trailing_marker=MARKER))

        for bundle in bundles:
            assert bundle.operations[-1] == MARKER
            assert bundle.operations.count(MARKER) == 1
            assert bundle.size >= 1

    def test_builder_maps_items_one_to_one(self):
        bundles = pack(
            ["A", "B", "C"],
            BatchConfig(capacity=2),
            build=lambda r: ("op", r),
        )

        assert bundles[0].content == [("op", "A"), ("op", "B")]
        assert bundles[0].sources == ["A", "B"]
        assert bundles[1].content == [("op", "C")]
        assert bundles[1].sources == ["C"]

    def test_assembler_receives_operations_with_marker(self):
        assembled = []

        def assemble(operations):
            assembled.append(list(operations))
            return len(assembled)

        bundles = pack(
            ["A", "B", "C"],
            BatchConfig(capacity=2, trailing_marker="M"),
            assemble=assemble,
        )

        assert assembled == [["A", "B", "M"], ["C", "M"]]
        assert [b.payload for b in bundles] == [1, 2]

    def test_no_assembler_leaves_payload_empty(self):
        bundles = pack(["A"], BatchConfig(capacity=2))

        assert bundles[0].payload is None

    def test_accepts_generators(self):
        bundles = pack((i for i in range(5)), BatchConfig(capacity=2))

        assert [b.size for b in bundles] == [2, 2, 1]

    def test_bundles_do_not_share_content(self):
        bundles = pack(range(4), BatchConfig(capacity=2))

        assert bundles[0].content is not bundles[1].content
        assert bundles[0].bundle_id != bundles[1].bundle_id


# ============================================================================
# Test BundlePacker
# ============================================================================

class TestBundlePacker:
    """Tests for the per-phase packer wrapper."""

    def test_packer_uses_configuration(self):
        packer = BundlePacker(
            BatchConfig(capacity=2, trailing_marker="M"),
            build=str.upper,
            kind=BundleKind.TRANSFER,
        )

        bundles = packer.pack(["a", "b", "c"])

        assert packer.capacity == 2
        assert [b.operations for b in bundles] == [["A", "B", "M"], ["C", "M"]]

    @pytest.mark.parametrize("count,expected", [(0, 0), (1, 1), (12, 1), (13, 2), (25, 3)])
    def test_bundle_count(self, count, expected):
        packer = BundlePacker(BatchConfig(capacity=12))

        assert packer.bundle_count(count) == expected
        assert len(packer.pack(range(count))) == expected


# ============================================================================
# Test Bundle Model
# ============================================================================

class TestBundleModel:
    """Tests for the Bundle data model."""

    def test_bundle_defaults(self):
        bundle = Bundle(kind="transfer", index=0, content=[1, 2])

        assert bundle.kind == BundleKind.TRANSFER
        assert bundle.status == BundleStatus.PLANNED
        assert bundle.operations == [1, 2]
        assert bundle.size == 2
        assert bundle.has_marker is False

    def test_status_transitions(self):
        bundle = Bundle(kind=BundleKind.TRANSFER, index=0, content=[1])

        bundle.mark_submitted("tx123")
        assert bundle.status == BundleStatus.SUBMITTED
        assert bundle.transaction_id == "tx123"

        bundle.mark_confirmed()
        assert bundle.status == BundleStatus.CONFIRMED

    def test_mark_failed(self):
        bundle = Bundle(kind=BundleKind.PROVISIONING, index=0, content=[1])

        bundle.mark_failed("rejected")

        assert bundle.status == BundleStatus.FAILED
        assert bundle.error_message == "rejected"

    def test_bundle_serialization(self):
        bundles = pack(
            ["A", "B"],
            BatchConfig(capacity=5, trailing_marker="M"),
        )

        data = bundles[0].to_dict()

        assert data["kind"] == "transfer"
        assert data["size"] == 2
        assert data["has_marker"] is True
        assert data["status"] == "planned"
        assert data["sources"] == ["A", "B"]
