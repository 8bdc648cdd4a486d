"""Tests for segment extraction."""

from pathlib import Path

import pytest

from conftest import FakeEngine
from pairclip.config import PipelineConfig
from pairclip.errors import SegmentError
from pairclip.splitter import ClipSplitter, SegmentJob

PREFIX = "2024-05-01 - alice"


def _source(tmp_path: Path) -> Path:
    src = tmp_path / "src.mp4"
    src.write_bytes(b"video")
    return src


def test_plan_enumerates_all_segments(config: PipelineConfig, tmp_path: Path) -> None:
    splitter = ClipSplitter(config, FakeEngine(config))
    jobs = splitter.plan(_source(tmp_path), tmp_path / "clips", PREFIX)
    assert len(jobs) == 30
    assert jobs[0].destination.name == f"{PREFIX}_clip01.mp4"
    assert jobs[-1].destination.name == f"{PREFIX}_clip30.mp4"
    assert [j.start for j in jobs[:3]] == [0.0, 4.0, 8.0]
    assert jobs[-1].start == 116.0
    assert all(j.duration == 4.0 for j in jobs)


def test_partial_path_keeps_extension() -> None:
    job = SegmentJob(Path("/s.mp4"), Path("/d/x_clip01.mp4"), 0.0, 4.0)
    assert job.partial_path == Path("/d/x_clip01.part.mp4")


def test_split_creates_every_segment(config: PipelineConfig, tmp_path: Path) -> None:
    engine = FakeEngine(config)
    dest = tmp_path / "clips" / "alice"
    created = ClipSplitter(config, engine).split(_source(tmp_path), dest, PREFIX)
    assert len(created) == 30
    assert sorted(p.name for p in dest.iterdir()) == sorted(p.name for p in created)
    assert not list(dest.glob("*.part.*"))
    assert all(call[3].name.endswith(".part.mp4") for call in engine.segment_calls)


def test_split_resumes_without_touching_existing(
    config: PipelineConfig, tmp_path: Path
) -> None:
    engine = FakeEngine(config)
    dest = tmp_path / "clips" / "alice"
    dest.mkdir(parents=True)
    for i in range(10):
        (dest / config.clip_name(PREFIX, i)).write_bytes(b"old")

    created = ClipSplitter(config, engine).split(_source(tmp_path), dest, PREFIX)

    assert [p.name for p in created] == [
        f"{PREFIX}_clip{n:02d}.mp4" for n in range(11, 31)
    ]
    assert len(engine.segment_calls) == 20
    assert sorted(c[1] for c in engine.segment_calls) == [
        float(i * 4) for i in range(10, 30)
    ]
    for i in range(10):
        assert (dest / config.clip_name(PREFIX, i)).read_bytes() == b"old"


def test_split_with_all_segments_present_runs_nothing(
    config: PipelineConfig, tmp_path: Path
) -> None:
    engine = FakeEngine(config)
    dest = tmp_path / "clips"
    dest.mkdir()
    for i in range(config.clip_count):
        (dest / config.clip_name(PREFIX, i)).write_bytes(b"old")
    assert ClipSplitter(config, engine).split(_source(tmp_path), dest, PREFIX) == []
    assert engine.segment_calls == []


def test_failed_segment_leaves_no_partial_file(
    config: PipelineConfig, tmp_path: Path
) -> None:
    engine = FakeEngine(config, fail_segment=["_clip05."])
    dest = tmp_path / "clips"
    with pytest.raises(SegmentError) as excinfo:
        ClipSplitter(config, engine).split(_source(tmp_path), dest, PREFIX)
    assert excinfo.value.returncode == 1
    assert "_clip05" in str(excinfo.value)
    assert not (dest / config.clip_name(PREFIX, 4)).exists()
    assert not list(dest.glob("*.part.*"))


def test_empty_segment_is_an_error(config: PipelineConfig, tmp_path: Path) -> None:
    class EmptyEngine(FakeEngine):
        def transcode_segment(self, src, start, duration, out):
            out.write_bytes(b"")

    one = PipelineConfig(root=config.root, clip_count=1, concurrency=2)
    dest = tmp_path / "clips"
    with pytest.raises(SegmentError, match="empty"):
        ClipSplitter(one, EmptyEngine(one)).split(_source(tmp_path), dest, PREFIX)
    assert list(dest.iterdir()) == []
