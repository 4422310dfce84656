import threading
import time

import pytest

from docchat.core.exceptions import ConfigurationError
from docchat.services.batching import iter_batches, run_batch, run_in_batches


def test_iter_batches():
    assert iter_batches([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert iter_batches([], 3) == []


def test_iter_batches_rejects_bad_size():
    with pytest.raises(ConfigurationError):
        iter_batches([1], 0)


def test_run_batch_runs_items_concurrently():
    barrier = threading.Barrier(3, timeout=5)

    def work(item):
        barrier.wait()
        return item * 2

    assert run_batch([1, 2, 3], work) == [2, 4, 6]


def test_run_batch_cancels_pending_items_on_failure():
    started = []

    def work(item):
        if item == 0:
            raise RuntimeError("boom")
        time.sleep(0.05)
        started.append(item)
        return item

    with pytest.raises(RuntimeError, match="boom"):
        run_batch(list(range(10)), work, max_workers=1)

    # at most the item already picked up by the worker finishes
    assert len(started) <= 1


def test_batches_run_sequentially():
    active = []
    peak = []
    lock = threading.Lock()

    def work(item):
        with lock:
            active.append(item)
            peak.append(len(active))
        time.sleep(0.01)
        with lock:
            active.remove(item)
        return item

    results = run_in_batches(list(range(9)), work, batch_size=3)

    assert results == list(range(9))
    assert max(peak) <= 3


def test_failure_stops_later_batches():
    seen = []

    def work(item):
        seen.append(item)
        if item == 4:
            raise ValueError("bad item")
        return item

    with pytest.raises(ValueError, match="bad item"):
        run_in_batches(list(range(9)), work, batch_size=3)

    assert not any(item >= 6 for item in seen)
