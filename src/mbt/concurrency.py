from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from contextvars import copy_context
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def map_in_order_fail_fast(
    func: Callable[[T], R],
    items: Sequence[T],
    *,
    max_workers: int,
) -> list[R]:
    """
    Apply ``func`` to every item, returning results in input order.

    The first exception cancels pending work and is re-raised.
    """
    if not items:
        return []
    if max_workers <= 1 or len(items) == 1:
        return [func(item) for item in items]

    results: dict[int, R] = {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        future_to_index = {
            executor.submit(copy_context().run, func, item): index
            for index, item in enumerate(items)
        }
        try:
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()
        except Exception:
            for future in future_to_index:
                future.cancel()
            raise

    return [results[index] for index in range(len(items))]
