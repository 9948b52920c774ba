from pathlib import Path

import pytest

from helpers import leftover_scratch, page_count
from src.cancellation.api import CancellationToken
from src.errors.api import CancelledError, NotFoundError
from src.memorymonitor.api import new_memory_monitor
from src.strategy.api import MergeStrategy, StrategySettings, create_batches, new_selector


def selector_for(pdf_ops, file_ops, usage, budget=1000, settings=None, register=None):
    monitor = new_memory_monitor(budget, probe=lambda: usage, on_reclaim=lambda: None)
    return new_selector(pdf_ops, file_ops, monitor, settings, register), monitor


def test_choose_direct_below_threshold(pdf_ops, file_ops):
    assert selector_for(pdf_ops, file_ops, 699)[0].choose() is MergeStrategy.DIRECT
    assert selector_for(pdf_ops, file_ops, 700)[0].choose() is MergeStrategy.STREAMING


def test_direct_merge(pdf_ops, file_ops, make_pdf, tmp_path: Path):
    selector, _ = selector_for(pdf_ops, file_ops, 0)
    out = str(tmp_path / "o.pdf")
    progress = []
    strategy = selector.merge(
        make_pdf("a.pdf", 3), [make_pdf("b.pdf", 2)], out, CancellationToken(), lambda f, d: progress.append(f)
    )
    assert strategy is MergeStrategy.DIRECT
    assert page_count(out) == 5
    assert progress == [0.5, 1.0]


def test_direct_merge_honours_cancellation(pdf_ops, file_ops, make_pdf, tmp_path: Path):
    selector, _ = selector_for(pdf_ops, file_ops, 0)
    token = CancellationToken()
    token.cancel()
    out = tmp_path / "o.pdf"
    with pytest.raises(CancelledError):
        selector.merge(make_pdf("a.pdf"), [make_pdf("b.pdf")], str(out), token)
    assert not out.exists()


def test_streaming_preprocesses_and_appends_in_chunks(pdf_ops, file_ops, make_pdf, tmp_path: Path, scratch_root):
    settings = StrategySettings(chunk_size=64, pause_seconds=0.0)
    registered = []
    selector, monitor = selector_for(pdf_ops, file_ops, 800, settings=settings, register=registered.append)
    inputs = [make_pdf(f"f{i}.pdf", pages=2) for i in range(6)]
    out = str(tmp_path / "o.pdf")

    strategy = selector.merge(inputs[0], inputs[1:], out, CancellationToken())

    assert strategy is MergeStrategy.STREAMING
    assert page_count(out) == 12
    streamer = selector.last_streamer
    assert streamer.chunk_count > 12
    assert streamer.pause_count == 0
    assert streamer.temp_files() == []
    assert registered and registered[0].description == "release resources: streaming scratch files"
    # unconditional reclamation on inputs 1 and 6
    assert monitor.reclaim_count == 2
    assert leftover_scratch(scratch_root) == []


def test_streaming_pauses_above_ninety_percent(pdf_ops, file_ops, make_pdf, tmp_path: Path):
    settings = StrategySettings(chunk_size=1024 * 1024, pause_seconds=0.0)
    selector, monitor = selector_for(pdf_ops, file_ops, 950, settings=settings)
    out = str(tmp_path / "o.pdf")
    selector.merge(make_pdf("a.pdf", 3), [make_pdf("b.pdf", 1)], out, CancellationToken())
    assert selector.last_streamer.pause_count >= 2
    assert monitor.reclaim_count >= 2
    assert page_count(out) == 4


def test_streaming_cleans_scratch_on_failure(pdf_ops, file_ops, make_pdf, tmp_path: Path, scratch_root):
    settings = StrategySettings(chunk_size=64, pause_seconds=0.0)
    selector, _ = selector_for(pdf_ops, file_ops, 800, settings=settings)
    out = tmp_path / "o.pdf"
    with pytest.raises(NotFoundError):
        selector.merge(make_pdf("a.pdf", 2), [str(tmp_path / "missing.pdf")], str(out), CancellationToken())
    assert not out.exists()
    assert leftover_scratch(scratch_root) == []


def test_create_batches_is_contiguous():
    files = [f"{i}.pdf" for i in range(25)]
    batches = create_batches(files, 10)
    assert [len(b) for b in batches] == [10, 10, 5]
    assert batches[1][0] == "10.pdf"


def test_batched_merge(pdf_ops, file_ops, make_pdf, tmp_path: Path, scratch_root):
    settings = StrategySettings(batch_size=10, max_concurrency=2)
    selector, _ = selector_for(pdf_ops, file_ops, 0, settings=settings)
    inputs = [make_pdf(f"f{i:02d}.pdf") for i in range(25)]
    out = str(tmp_path / "o.pdf")
    progress = []

    strategy = selector.merge_batch(inputs, out, CancellationToken(), lambda f, d: progress.append(f))

    assert strategy is MergeStrategy.BATCHED
    assert page_count(out) == 25
    processor = selector.last_batch
    assert processor.batches_processed == 3
    assert 1 <= processor.peak_active <= 2
    assert progress[-1] == 1.0
    assert leftover_scratch(scratch_root) == []


def test_small_batch_falls_through_to_selector(pdf_ops, file_ops, make_pdf, tmp_path: Path):
    selector, _ = selector_for(pdf_ops, file_ops, 0)
    out = str(tmp_path / "o.pdf")
    strategy = selector.merge_batch([make_pdf("a.pdf"), make_pdf("b.pdf")], out, CancellationToken())
    assert strategy is MergeStrategy.DIRECT
    assert page_count(out) == 2
