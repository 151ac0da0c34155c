"""
Utility functions for bulk operations.
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split a sequence into consecutive chunks of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]
