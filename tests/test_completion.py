"""Tests for relocating inputs and cleaning up after a pair."""

from pathlib import Path

import pytest

import pairclip.completion as completion
import pairclip.workspace as workspace
from conftest import make_inputs
from pairclip.config import COLLECTION_A, COLLECTION_B, PipelineConfig
from pairclip.merger import PipelineOutcome
from pairclip.pairs import Pair
from pairclip.workspace import PairWorkspace


def _pair_and_workspace(config: PipelineConfig) -> tuple[Pair, PairWorkspace]:
    a, = make_inputs(config, COLLECTION_A, "1 - amy.mp4")
    b, = make_inputs(config, COLLECTION_B, "1 - amy.mov")
    pair = Pair(a, b, a.stem, b.stem, "amy", 0)
    ws = PairWorkspace.for_pair(config, pair)
    for d in (ws.clips_a, ws.clips_b, ws.output_dir):
        d.mkdir(parents=True)
        (d / "file.mp4").write_bytes(b"x")
    return pair, ws


def test_workspace_paths(config: PipelineConfig) -> None:
    pair = Pair(Path("a"), Path("b"), "2024-05-01 - alice", "x - bob b", "alice", 2)
    ws = PairWorkspace.for_pair(config, pair)
    assert ws.clips_a == config.clips_dir / "product" / "alice"
    assert ws.clips_b == config.clips_dir / "selfie" / "bob_b"
    assert ws.output_dir == config.output_dir / "03_alice_bob_b"


def test_workspace_never_reuses_output_dir(
    config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(workspace, "utc_ts", lambda: "20240501T000000Z")
    pair = Pair(Path("a"), Path("b"), "1 - amy", "1 - amy", "amy", 0)
    taken = config.output_dir / "01_amy_amy"
    taken.mkdir(parents=True)
    assert PairWorkspace.for_pair(config, pair).output_dir == taken.with_name(
        "01_amy_amy_20240501T000000Z"
    )
    taken.with_name("01_amy_amy_20240501T000000Z").mkdir()
    assert PairWorkspace.for_pair(config, pair).output_dir == taken.with_name(
        "01_amy_amy_20240501T000000Z_1"
    )


def test_workspace_names_unsanitizable_identities(config: PipelineConfig) -> None:
    pair = Pair(Path("a"), Path("b"), "1 - \u00e9\u00e9", "1 - \u00fc", "x", 0)
    ws = PairWorkspace.for_pair(config, pair)
    assert ws.clips_a == config.clips_dir / "product" / "unnamed"
    assert ws.output_dir.name == "01_unnamed_unnamed"


def test_resolve_completed_path_without_collision(tmp_path: Path) -> None:
    assert completion.resolve_completed_path(tmp_path, "a.mp4") == tmp_path / "a.mp4"


def test_resolve_completed_path_adds_timestamp(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(completion, "utc_ts", lambda: "20240501T000000Z")
    (tmp_path / "a.mp4").write_bytes(b"old")
    first = completion.resolve_completed_path(tmp_path, "a.mp4")
    assert first == tmp_path / "a_20240501T000000Z.mp4"
    first.write_bytes(b"older")
    second = completion.resolve_completed_path(tmp_path, "a.mp4")
    assert second == tmp_path / "a_20240501T000000Z_1.mp4"


def test_commit_success_moves_inputs(config: PipelineConfig) -> None:
    pair, ws = _pair_and_workspace(config)
    manager = completion.CompletionManager(config)
    manager.commit(pair, PipelineOutcome(success=True), ws)

    assert not pair.source_a.exists() and not pair.source_b.exists()
    assert (config.completed_collection_dir(COLLECTION_A) / "1 - amy.mp4").exists()
    assert (config.completed_collection_dir(COLLECTION_B) / "1 - amy.mov").exists()
    assert not ws.clips_a.exists() and not ws.clips_b.exists()
    assert (ws.output_dir / "file.mp4").exists()


def test_commit_never_overwrites_completed(
    config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(completion, "utc_ts", lambda: "20240501T000000Z")
    pair, ws = _pair_and_workspace(config)
    done = config.completed_collection_dir(COLLECTION_A)
    done.mkdir(parents=True)
    (done / "1 - amy.mp4").write_bytes(b"previous")

    completion.CompletionManager(config).commit(pair, PipelineOutcome(success=True), ws)

    assert (done / "1 - amy.mp4").read_bytes() == b"previous"
    assert (done / "1 - amy_20240501T000000Z.mp4").read_bytes() == b"video"


def test_rollback_removes_output_and_keeps_inputs(config: PipelineConfig) -> None:
    pair, ws = _pair_and_workspace(config)
    completion.CompletionManager(config).rollback(pair, ws)

    assert pair.source_a.exists() and pair.source_b.exists()
    assert not ws.output_dir.exists()
    assert not ws.clips_a.exists() and not ws.clips_b.exists()
    assert not config.completed_dir.exists()
