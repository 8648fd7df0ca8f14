import threading

import pytest

from streamkit.syncx.errors import (
    SyncTimeoutError,
    TaskDroppedError,
    WorkerPoolAlreadyStartedError,
    WorkerPoolAlreadyStoppedError,
    WorkerPoolStoppedError,
)
from streamkit.syncx.worker import (
    BackpressurePolicy,
    WorkerConfig,
    WorkerMetrics,
    WorkerPool,
)


def _block_single_worker(pool):
    """Submit a task that occupies the only worker; return its release event."""
    started = threading.Event()
    release = threading.Event()

    def blocker():
        started.set()
        release.wait(5)

    pool.submit(blocker)
    assert started.wait(2)
    return release


def test_creation():
    pool = WorkerPool(
        WorkerConfig(
            workers=4, queue_size=100, backpressure=BackpressurePolicy.BLOCK, metrics=True
        )
    )
    assert pool.workers == 4
    assert pool.queue_size == 100
    assert pool.backpressure is BackpressurePolicy.BLOCK
    assert pool.metrics() == WorkerMetrics()
    assert pool.is_started() is False


def test_creation_defaults_for_non_positive_sizes():
    pool = WorkerPool(WorkerConfig(workers=0, queue_size=-5))
    assert pool.workers == 1
    assert pool.queue_size == 100


def test_start_stop():
    pool = WorkerPool(WorkerConfig(workers=2, queue_size=10))
    pool.start()
    assert pool.is_started() is True

    with pytest.raises(WorkerPoolAlreadyStartedError):
        pool.start()

    pool.stop(5)
    assert pool.is_stopped() is True

    with pytest.raises(WorkerPoolAlreadyStoppedError):
        pool.stop(5)


def test_task_execution_and_metrics():
    pool = WorkerPool(WorkerConfig(workers=2, queue_size=10, metrics=True))
    pool.start()
    lock = threading.Lock()
    counter = [0]
    all_done = threading.Event()

    def task():
        with lock:
            counter[0] += 1
            if counter[0] == 10:
                all_done.set()

    for _ in range(10):
        pool.submit(task)

    assert all_done.wait(5)
    pool.stop(5)

    assert counter[0] == 10
    metrics = pool.metrics()
    assert metrics.tasks_submitted == 10
    assert metrics.tasks_completed == 10
    assert metrics.active_workers == 0


def test_metrics_disabled_stay_zero():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=4))
    done = threading.Event()
    pool.start()
    pool.submit(done.set)
    assert done.wait(2)
    pool.stop(5)
    assert pool.metrics() == WorkerMetrics()


def test_backpressure_drop_newest():
    pool = WorkerPool(
        WorkerConfig(
            workers=1, queue_size=2, backpressure=BackpressurePolicy.DROP_NEWEST, metrics=True
        )
    )
    pool.start()
    release = _block_single_worker(pool)
    pool.submit(lambda: None)
    pool.submit(lambda: None)

    with pytest.raises(TaskDroppedError):
        pool.submit(lambda: None)
    assert pool.metrics().tasks_dropped == 1

    release.set()
    pool.stop(5)


def test_backpressure_drop_oldest_keeps_newest():
    pool = WorkerPool(
        WorkerConfig(
            workers=1, queue_size=2, backpressure=BackpressurePolicy.DROP_OLDEST, metrics=True
        )
    )
    ran = []
    lock = threading.Lock()
    two_ran = threading.Event()

    def record(name):
        def task():
            with lock:
                ran.append(name)
                if len(ran) == 2:
                    two_ran.set()

        return task

    pool.submit(record("a"))
    pool.submit(record("b"))
    pool.submit(record("c"))
    assert pool.queue_depth() == 2
    assert pool.metrics().tasks_dropped == 1

    pool.start()
    assert two_ran.wait(5)
    pool.stop(5)
    assert ran == ["b", "c"]


def test_backpressure_drop_oldest_with_busy_worker():
    pool = WorkerPool(
        WorkerConfig(workers=1, queue_size=2, backpressure=BackpressurePolicy.DROP_OLDEST)
    )
    pool.start()
    release = _block_single_worker(pool)
    pool.submit(lambda: None)
    pool.submit(lambda: None)
    pool.submit(lambda: None)
    assert pool.queue_depth() == 2
    release.set()
    pool.stop(5)


def test_backpressure_block_waits_for_room():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=1))
    pool.start()
    release = _block_single_worker(pool)
    pool.submit(lambda: None)
    assert pool.queue_depth() == 1

    submitted = threading.Event()

    def submitter():
        pool.submit(lambda: None)
        submitted.set()

    thread = threading.Thread(target=submitter)
    thread.start()
    assert submitted.wait(0.1) is False
    assert pool.queue_depth() == 1
    release.set()
    assert submitted.wait(2) is True
    thread.join()
    pool.stop(5)
    assert pool.is_stopped() is True


def test_backpressure_block_fails_when_stopped():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=1))
    pool.submit(lambda: None)
    assert pool.queue_depth() == 1
    outcome = []
    waiting = threading.Event()

    def submitter():
        waiting.set()
        try:
            pool.submit(lambda: None)
        except WorkerPoolStoppedError as err:
            outcome.append(err)

    thread = threading.Thread(target=submitter)
    thread.start()
    assert waiting.wait(2)
    thread.join(0.1)
    assert pool.queue_depth() == 1
    pool.stop(1)
    thread.join(2)
    assert pool.is_stopped() is True
    assert len(outcome) == 1
    assert str(outcome[0]) == "worker pool is stopped"


def test_submit_with_timeout():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=1))
    pool.start()
    release = _block_single_worker(pool)
    pool.submit(lambda: None)

    with pytest.raises(SyncTimeoutError):
        pool.submit_with_timeout(lambda: None, 0.1)

    release.set()
    pool.stop(5)


def test_submit_with_timeout_succeeds_with_room():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=2, metrics=True))
    pool.submit_with_timeout(lambda: None, 0.1)
    assert pool.queue_depth() == 1
    assert pool.metrics().tasks_submitted == 1


def test_submit_after_stop():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=2))
    pool.start()
    pool.stop(5)
    with pytest.raises(WorkerPoolStoppedError):
        pool.submit(lambda: None)
    with pytest.raises(WorkerPoolStoppedError):
        pool.submit_with_timeout(lambda: None, 0.1)


def test_stop_times_out_on_busy_worker():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=2))
    pool.start()
    release = _block_single_worker(pool)
    with pytest.raises(SyncTimeoutError):
        pool.stop(0.05)
    assert pool.is_stopped() is True
    release.set()


def test_failing_task_does_not_kill_worker():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=4, metrics=True))
    pool.start()
    done = threading.Event()

    def boom():
        raise ValueError("boom")

    pool.submit(boom)
    pool.submit(done.set)
    assert done.wait(2)
    pool.stop(5)
    assert pool.metrics().tasks_completed == 1


def test_queue_depth_without_workers():
    pool = WorkerPool(WorkerConfig(workers=1, queue_size=3))
    for _ in range(3):
        pool.submit(lambda: None)
    assert pool.queue_depth() == 3