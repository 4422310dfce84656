"""
Bounded-concurrency batch execution with all-or-nothing semantics.
"""
import logging
import math
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, TypeVar

from docchat.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def iter_batches(items: Sequence[T], batch_size: int) -> List[Sequence[T]]:
    """Split items into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ConfigurationError(f"batch_size must be at least 1, got {batch_size}")
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


def run_batch(batch: Sequence[T], func: Callable[[T], R], max_workers: Optional[int] = None) -> List[R]:
    """
    Run ``func`` over every item of one batch concurrently.

    The first failure cancels the items that have not started yet and is
    re-raised; no partial results are returned.
    """
    if not batch:
        return []

    with ThreadPoolExecutor(max_workers=max_workers or len(batch)) as executor:
        futures = [executor.submit(func, item) for item in batch]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        for future in futures:
            if future in done and future.exception() is not None:
                for other in pending:
                    other.cancel()
                raise future.exception()

        return [future.result() for future in futures]


def run_in_batches(
    items: Sequence[T],
    func: Callable[[T], R],
    batch_size: int,
    max_workers: Optional[int] = None,
    label: str = "items"
) -> List[R]:
    """
    Process items batch by batch; batches never overlap.

    Args:
        items: Work items
        func: Called once per item
        batch_size: Items per batch (all run concurrently)
        max_workers: Optional cap on threads per batch
        label: Used in progress logging

    Returns:
        Results in input order
    """
    batches = iter_batches(items, batch_size)
    total_batches = math.ceil(len(items) / batch_size) if items else 0

    results: List[R] = []
    for batch_num, batch in enumerate(batches, 1):
        logger.info(f"Processing batch {batch_num}/{total_batches} ({len(batch)} {label})")
        try:
            results.extend(run_batch(batch, func, max_workers))
        except Exception:
            logger.error(f"Batch {batch_num}/{total_batches} failed")
            raise
    return results
