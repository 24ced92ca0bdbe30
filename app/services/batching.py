from typing import Callable, TypeVar

T = TypeVar("T")


def build_batch(count: int, make_row: Callable[[], T]) -> list[T]:
    """Ready-to-insert rows for a bulk statement; non-positive counts yield an empty batch."""
    return [make_row() for _ in range(max(0, count))]
