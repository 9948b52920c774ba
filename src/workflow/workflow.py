from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional

from src.cancellation.api import CANCELLED_MESSAGE, CancellationToken
from src.errors.api import (
    CancelledError,
    EncryptedError,
    InvalidTransitionError,
    MergeError,
    StageError,
    should_retry,
)
from src.filelist.api import format_size
from src.progress.api import ProgressTracker, new_tracker
from .model import (
    COMPLETED_STATUS,
    MAX_RETRIES,
    RETRY_DELAY,
    PasswordProvider,
    RunContext,
    Stage,
)

logger = logging.getLogger(__name__)

StageReport = Callable[[float, str], None]


class WorkflowDriver:
    """Runs the five merge stages for one job and publishes every outcome on the bus.

    The driver is the only writer of the job store while a job runs. It never
    references the controller that owns it.
    """

    def __init__(
        self,
        store,
        registry,
        bus,
        pdf_ops,
        file_ops,
        selector,
        monitor,
        config,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        password_provider: Optional[PasswordProvider] = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._bus = bus
        self._pdf_ops = pdf_ops
        self._file_ops = file_ops
        self._selector = selector
        self._monitor = monitor
        self._config = config
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.password_provider = password_provider
        self._lock = threading.Lock()
        # batch workers report concurrently; keep published progress ordered
        self._report_lock = threading.RLock()
        self._tracker: Optional[ProgressTracker] = None
        self._last_pct = 0.0

    @property
    def tracker(self) -> Optional[ProgressTracker]:
        with self._lock:
            return self._tracker

    def run(self, job_id: str, token: CancellationToken) -> None:
        job = self._store.current()
        if job is None or job.id != job_id:
            raise InvalidTransitionError(job_id, "missing", "Running")

        with self._lock:
            self._tracker = new_tracker(len(Stage))
            self._last_pct = 0.0
        self._bus.begin_job()
        self._bus.publish_ui_state(False)
        self._monitor.start()

        ctx = RunContext(job_id=job_id, inputs=list(job.all_files), output_path=job.output_path, batch=job.batch)
        error: Optional[BaseException] = None
        try:
            self._store.mark_running(job_id)
            for stage in Stage:
                token.raise_if_cancelled()
                self._run_stage(stage, ctx, token)
            self._store.mark_completed(job_id)
        except InvalidTransitionError as e:
            # the cancel path finalizes the job from another thread
            error = CancelledError() if token.cancelled else e
        except MergeError as e:
            error = e
        except Exception as e:
            logger.exception("job %s failed unexpectedly", job_id)
            error = StageError("Workflow", e)

        if error is not None:
            self._store.mark_failed(job_id, CANCELLED_MESSAGE if isinstance(error, CancelledError) else str(error))
        self._release(job_id)

        tracker = self.tracker
        if error is None:
            logger.info("job %s completed (%s, %s)", job_id, ctx.strategy, format_size(ctx.output_size))
            tracker.complete(COMPLETED_STATUS)
            self._bus.publish_progress(1.0, COMPLETED_STATUS, ctx.output_path)
            self._bus.publish_ui_state(True)
            self._bus.publish_completion(ctx.output_path)
        else:
            if isinstance(error, CancelledError):
                logger.info("job %s cancelled", job_id)
                tracker.cancel(CANCELLED_MESSAGE)
            else:
                logger.info("job %s failed: %s", job_id, error)
            self._bus.publish_ui_state(True)
            self._bus.publish_error(error)

    def _release(self, job_id: str) -> None:
        self._monitor.stop()
        try:
            self._file_ops.cleanup_temp_files()
        except MergeError as e:
            logger.warning("temp file cleanup for job %s: %s", job_id, e)
        self._registry.release(job_id)

    def _run_stage(self, stage: Stage, ctx: RunContext, token: CancellationToken) -> None:
        handlers = {
            Stage.VALIDATION: self._validate,
            Stage.PREPARATION: self._prepare,
            Stage.DECRYPTION: self._decrypt,
            Stage.MERGING: self._merge,
            Stage.FINALIZATION: self._finalize,
        }
        handler = handlers[stage]
        tracker = self.tracker
        tracker.set_current_step(stage.step, stage.label)

        attempt = 0
        while True:
            token.raise_if_cancelled()
            status = stage.label if attempt == 0 else f"{stage.label} (retry {attempt}/{self.max_retries})"
            report = self._reporter(ctx.job_id, stage, status)
            report(0.0, "")
            ctx.attempts[stage.label] = attempt + 1
            logger.debug("job %s: %s", ctx.job_id, status)
            try:
                handler(ctx, token, report)
                report(1.0, "")
                return
            except CancelledError:
                raise
            except Exception as e:
                if token.cancelled:
                    raise CancelledError() from e
                if attempt >= self.max_retries or not should_retry(e):
                    raise StageError(stage.label, e) from e
                delay = self.retry_delay * (attempt + 1)
                logger.info("%s failed (%s), retrying in %.1fs", stage.label, e, delay)
                if token.wait(delay):
                    raise CancelledError() from e
                attempt += 1

    def _reporter(self, job_id: str, stage: Stage, status: str) -> StageReport:
        tracker = self.tracker

        def report(fraction: float, detail: str) -> None:
            with self._report_lock:
                pct = max(self._last_pct, stage.scale(fraction))
                self._last_pct = pct
                self._store.update_progress(job_id, pct * 100.0)
                tracker.update_step_progress(stage.fraction_of(pct) * 100.0, detail)
                self._bus.publish_progress(pct, status, detail)

        return report

    # stages

    def _validate(self, ctx: RunContext, token: CancellationToken, report: StageReport) -> None:
        total = len(ctx.inputs)
        for i, path in enumerate(ctx.inputs):
            token.raise_if_cancelled()
            self._pdf_ops.validate(path)
            report((i + 1) / total, f"Validated {os.path.basename(path)} ({i + 1}/{total})")

    def _prepare(self, ctx: RunContext, token: CancellationToken, report: StageReport) -> None:
        out_dir = os.path.dirname(os.path.abspath(ctx.output_path))
        self._file_ops.ensure_dir_exists(out_dir)
        token.raise_if_cancelled()
        self._file_ops.check_writable(out_dir)
        report(0.5, f"Output directory {out_dir} is writable")

        total_size = 0
        for path in ctx.inputs:
            token.raise_if_cancelled()
            total_size += self._file_ops.info(path).size
        ctx.total_size = total_size
        report(1.0, f"Estimated output size {format_size(total_size)}")

    def _decrypt(self, ctx: RunContext, token: CancellationToken, report: StageReport) -> None:
        total = len(ctx.inputs)
        for i, path in enumerate(ctx.inputs):
            token.raise_if_cancelled()
            if self._pdf_ops.is_encrypted(path):
                ctx.inputs[i] = self._unlock(path, token)
                ctx.decrypted.append(path)
                report((i + 1) / total, f"Decrypted {os.path.basename(path)}")
            else:
                report((i + 1) / total, f"{os.path.basename(path)} is not encrypted")

    def _unlock(self, path: str, token: CancellationToken) -> str:
        password = None
        if self._config.enable_auto_decrypt:
            for candidate in self._config.common_passwords:
                token.raise_if_cancelled()
                if self._pdf_ops.authenticate(path, candidate):
                    password = candidate
                    break
        if password is None and self.password_provider is not None:
            supplied = self.password_provider(path)
            if supplied is not None and self._pdf_ops.authenticate(path, supplied):
                password = supplied
        if password is None:
            raise EncryptedError(path)

        scratch, handle = self._file_ops.create_temp_file("decrypted_", ".pdf")
        handle.close()
        self._pdf_ops.decrypt(path, password, scratch)
        logger.debug("decrypted %s into %s", path, scratch)
        return scratch

    def _merge(self, ctx: RunContext, token: CancellationToken, report: StageReport) -> None:
        if ctx.batch:
            strategy = self._selector.merge_batch(ctx.inputs, ctx.output_path, token, report)
        else:
            strategy = self._selector.merge(ctx.inputs[0], ctx.inputs[1:], ctx.output_path, token, report)
        ctx.strategy = strategy.value

    def _finalize(self, ctx: RunContext, token: CancellationToken, report: StageReport) -> None:
        self._pdf_ops.validate(ctx.output_path)
        report(0.4, "Output validated")
        try:
            self._file_ops.cleanup_temp_files()
        except MergeError as e:
            logger.warning("finalization cleanup: %s", e)
        ctx.output_size = self._file_ops.info(ctx.output_path).size
        report(1.0, f"Output size {format_size(ctx.output_size)}")
