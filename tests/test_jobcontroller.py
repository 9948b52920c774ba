import os
import time
from pathlib import Path

import pytest

from helpers import ScriptedPdfOps, leftover_scratch, page_count, wait_for
from src.config.api import Config
from src.errors.api import AlreadyRunningError, ErrorKind, InvalidInputError, NoRunningJobError, NotFoundError
from src.jobcontroller.api import MergeController, submit
from src.jobstore.api import JobStatus
from src.strategy.api import MergeStrategy, StrategySettings


def controller_for(file_ops, pdf_ops=None, config=None, usage=0, **kw):
    controller = MergeController(
        config or Config(),
        pdf_ops=pdf_ops or ScriptedPdfOps(),
        file_ops=file_ops,
        heap_probe=lambda: usage,
        check_interval=0.01,
        retry_delay=0.01,
        **kw,
    )
    events = []
    controller.bus.on_progress(lambda pct, status, detail: events.append(("progress", pct, status)))
    controller.bus.on_error(lambda err: events.append(("error", err)))
    controller.bus.on_completion(lambda path: events.append(("completion", path)))
    controller.bus.on_ui_state(lambda enabled: events.append(("ui", enabled)))
    return controller, events


def test_merge_two_files(make_pdf, file_ops, scratch_root, tmp_path: Path):
    controller, events = controller_for(file_ops)
    out = str(tmp_path / "o.pdf")
    job_id = controller.start_merge_job(make_pdf("a.pdf", 3), [make_pdf("b.pdf", 2)], out)
    assert controller.wait(10)

    job = controller.current_job()
    assert job.id == job_id
    assert job.status is JobStatus.COMPLETED
    assert page_count(out) == 5
    progress = [e for e in events if e[0] == "progress"]
    assert len(progress) >= 5
    statuses = {e[2] for e in progress}
    assert {"Validation", "Preparation", "Merging", "Finalization", "Completed"} <= statuses
    assert [e for e in events if e[0] == "completion"] == [("completion", out)]
    assert not controller.is_job_running()
    assert controller.progress().completed
    assert leftover_scratch(scratch_root) == []


def test_missing_main_file(make_pdf, file_ops, scratch_root, tmp_path: Path):
    controller, events = controller_for(file_ops)
    out = tmp_path / "o.pdf"
    controller.start_merge_job(str(tmp_path / "missing.pdf"), [make_pdf("b.pdf")], str(out))
    assert controller.wait(10)

    job = controller.current_job()
    assert job.status is JobStatus.FAILED
    (err,) = [e[1] for e in events if e[0] == "error"]
    assert err.kind is ErrorKind.NOT_FOUND
    assert not out.exists()
    assert leftover_scratch(scratch_root) == []


def test_second_submit_is_rejected_while_running(make_pdf, file_ops, tmp_path: Path):
    controller, _ = controller_for(file_ops, pdf_ops=ScriptedPdfOps(validate_delay=0.2))
    a, b = make_pdf("a.pdf"), make_pdf("b.pdf")
    controller.start_merge_job(a, [b], str(tmp_path / "o.pdf"))
    with pytest.raises(AlreadyRunningError):
        controller.start_merge_job(a, [b], str(tmp_path / "o2.pdf"))
    assert controller.wait(10)
    assert controller.current_job().status is JobStatus.COMPLETED

    controller.start_merge_job(a, [b], str(tmp_path / "o3.pdf"))
    assert controller.wait(10)
    assert controller.current_job().status is JobStatus.COMPLETED


def test_cancel_running_job(make_pdf, file_ops, scratch_root, tmp_path: Path):
    controller, events = controller_for(file_ops, pdf_ops=ScriptedPdfOps(validate_delay=0.2))
    out = tmp_path / "o.pdf"
    controller.start_merge_job(make_pdf("a.pdf"), [make_pdf("b.pdf")], str(out))
    time.sleep(0.05)

    start = time.monotonic()
    controller.cancel_current_job(timeout=5)
    assert time.monotonic() - start < 5

    job = controller.current_job()
    assert job.status is JobStatus.FAILED
    assert job.error == "cancelled by user"
    assert not controller.is_job_running()
    assert not out.exists()
    assert leftover_scratch(scratch_root) == []
    assert [e[0] for e in events if e[0] != "progress"][-2:] == ["ui", "error"]
    assert len([e for e in events if e[0] == "error"]) == 1


def test_cancel_without_job_emits_nothing(file_ops):
    controller, events = controller_for(file_ops)
    with pytest.raises(NoRunningJobError, match="no running job"):
        controller.cancel_current_job()
    assert events == []


def test_low_memory_budget_streams(make_pdf, file_ops, scratch_root, tmp_path: Path):
    config = Config(max_memory_usage=1024)
    controller, _ = controller_for(file_ops, config=config, usage=800)
    inputs = [make_pdf(f"f{i:02d}.pdf") for i in range(15)]
    out = str(tmp_path / "o.pdf")

    result = controller.merge_pdfs(inputs[0], inputs[1:], out, timeout=30)

    assert result.ok
    assert result.details["strategy"] == "streaming"
    assert controller.selector.last_strategy is MergeStrategy.STREAMING
    assert controller.monitor.peak_usage <= 2 * config.max_memory_usage
    assert page_count(out) == 15
    assert leftover_scratch(scratch_root) == []


def test_cancel_while_streaming_removes_scratch(make_pdf, file_ops, scratch_root, tmp_path: Path):
    controller, events = controller_for(
        file_ops,
        pdf_ops=ScriptedPdfOps(page_count_delay=0.2),
        config=Config(max_memory_usage=1024),
        usage=800,
        settings=StrategySettings(chunk_size=64, pause_seconds=0.0),
    )
    inputs = [make_pdf(f"f{i}.pdf") for i in range(6)]
    out = tmp_path / "o.pdf"
    controller.start_merge_job(inputs[0], inputs[1:], str(out))
    assert wait_for(lambda: file_ops.temp_file_count() > 0)

    controller.cancel_current_job(timeout=5)

    job = controller.current_job()
    assert job.status is JobStatus.FAILED
    assert job.error == "cancelled by user"
    assert controller.selector.last_streamer is not None
    assert not controller.is_job_running()
    assert not out.exists()
    assert leftover_scratch(scratch_root) == []
    assert len([e for e in events if e[0] == "error"]) == 1


def test_cancel_between_batches_removes_scratch(make_pdf, file_ops, scratch_root, tmp_path: Path):
    pdf_ops = ScriptedPdfOps(merge_delay=0.3)
    controller, events = controller_for(file_ops, pdf_ops=pdf_ops, settings=StrategySettings(batch_size=10))
    inputs = [make_pdf(f"f{i:02d}.pdf") for i in range(25)]
    out = tmp_path / "o.pdf"
    controller.start_batch_job(inputs, str(out))
    assert wait_for(lambda: file_ops.temp_file_count() > 0)

    controller.cancel_current_job(timeout=5)

    job = controller.current_job()
    assert job.status is JobStatus.FAILED
    assert job.error == "cancelled by user"
    assert not controller.is_job_running()
    assert not out.exists()
    assert leftover_scratch(scratch_root) == []
    assert len(pdf_ops.merge_calls) <= 3
    assert len([e for e in events if e[0] == "error"]) == 1


def test_batch_interface(make_pdf, file_ops, scratch_root, tmp_path: Path):
    controller, _ = controller_for(file_ops, settings=StrategySettings(batch_size=10))
    inputs = [make_pdf(f"f{i:02d}.pdf") for i in range(25)]
    out = str(tmp_path / "o.pdf")

    controller.start_batch_job(inputs, out)
    assert controller.wait(30)

    assert controller.current_job().status is JobStatus.COMPLETED
    assert controller.selector.last_batch.batches_processed == 3
    assert page_count(out) == 25
    assert leftover_scratch(scratch_root) == []


def test_relative_output_goes_to_output_directory(make_pdf, file_ops, tmp_path: Path):
    out_dir = tmp_path / "exports"
    controller, _ = controller_for(file_ops, config=Config(output_directory=str(out_dir)))
    result = controller.merge_pdfs(make_pdf("a.pdf"), [make_pdf("b.pdf")], "merged.pdf", timeout=10)
    assert result.ok
    assert result.output_path == os.path.join(str(out_dir), "merged.pdf")
    assert (out_dir / "merged.pdf").exists()


def test_input_validation(make_pdf, file_ops, tmp_path: Path):
    controller, _ = controller_for(file_ops)
    a = make_pdf("a.pdf")
    with pytest.raises(InvalidInputError, match="additional file"):
        controller.start_merge_job(a, [], str(tmp_path / "o.pdf"))
    with pytest.raises(InvalidInputError):
        controller.start_batch_job([a], str(tmp_path / "o.pdf"))
    with pytest.raises(InvalidInputError):
        controller.validate_files([a, a])
    with pytest.raises(NotFoundError):
        controller.validate_files([a, str(tmp_path / "missing.pdf")])
    assert controller.file_entry(a).page_count == 1


def test_submit_runs_to_completion(make_pdf, scratch_root, tmp_path: Path):
    config = Config(temp_directory=str(scratch_root))
    out = str(tmp_path / "o.pdf")
    result = submit(make_pdf("a.pdf", 2), [make_pdf("b.pdf")], out, config)
    assert result.ok
    assert result.details["progress"] == 100
    assert page_count(out) == 3
    assert leftover_scratch(scratch_root) == []
