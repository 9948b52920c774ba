import threading
import time

import pytest

from src.cancellation.api import (
    CancellationToken,
    JobStateCleanupTask,
    ResourceCleanupTask,
    TempFileCleanupTask,
    new_registry,
)
from src.errors.api import CancelledError, CancelTimeoutError, UnknownJobError
from src.jobstore.api import JobStatus, new_job_store


class RecordingTask:
    def __init__(self, name, log, fail=False):
        self.description = name
        self._log = log
        self._fail = fail

    def execute(self):
        self._log.append(self.description)
        if self._fail:
            raise RuntimeError("cleanup exploded")
        return True


def test_cancel_fires_handle_and_runs_cleanup_in_order():
    token = CancellationToken()
    log = []
    registry = new_registry(lambda: False)
    registry.register("job", token.cancel)
    registry.add_cleanup(RecordingTask("first", log))
    registry.add_cleanup(RecordingTask("second", log, fail=True))
    registry.add_cleanup(RecordingTask("third", log))

    registry.cancel("job")

    assert token.cancelled
    assert log == ["first", "second", "third"]
    assert not registry.is_registered("job")
    assert registry.pending_cleanup() == []
    with pytest.raises(UnknownJobError):
        registry.cancel("job")


def test_cancel_all_drains_every_handle():
    tokens = [CancellationToken() for _ in range(3)]
    registry = new_registry(lambda: False)
    for i, t in enumerate(tokens):
        registry.register(f"job{i}", t.cancel)
    assert registry.cancel_all() == 3
    assert all(t.cancelled for t in tokens)


def test_graceful_cancel_waits_for_job_to_stop():
    running = threading.Event()
    running.set()
    token = CancellationToken()

    def worker():
        token.wait(5)
        time.sleep(0.05)
        running.clear()

    registry = new_registry(running.is_set, poll_interval=0.01)
    registry.register("job", token.cancel)
    t = threading.Thread(target=worker)
    t.start()
    registry.graceful_cancel("job", timeout=2)
    assert not running.is_set()
    t.join()


def test_graceful_cancel_times_out_but_signals():
    token = CancellationToken()
    registry = new_registry(lambda: True, poll_interval=0.01)
    registry.register("job", token.cancel)
    start = time.monotonic()
    with pytest.raises(CancelTimeoutError):
        registry.graceful_cancel("job", timeout=0.1)
    assert time.monotonic() - start < 1.0
    assert token.cancelled


def test_token_raises_once_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()
    with pytest.raises(CancelledError):
        token.raise_if_cancelled()
    assert token.wait(10) is True


def test_job_state_task_is_idempotent():
    store = new_job_store()
    job_id = store.submit("a.pdf", ["b.pdf"], "out.pdf")
    store.mark_running(job_id)
    task = JobStateCleanupTask(store, job_id)
    assert task.execute()
    assert task.execute()
    job = store.current()
    assert job.status is JobStatus.FAILED
    assert job.error == "cancelled by user"
    assert job.cancelled


def test_resource_task_reports_failed_release():
    released = []
    task = ResourceCleanupTask("handles", lambda: released.append(1))
    task.add(lambda: False)
    assert task.execute() is False
    assert released == [1]
    assert task.description == "release resources: handles"


def test_temp_file_task_sweeps_scratch(file_ops, scratch_root):
    path, handle = file_ops.create_temp_file("preprocessed_", ".pdf")
    handle.close()
    task = TempFileCleanupTask(file_ops)
    assert task.execute()
    assert task.execute()
    assert file_ops.temp_file_count() == 0
    assert not list(scratch_root.glob("pdf-merger-*"))
