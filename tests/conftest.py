import sys
import threading
from pathlib import Path
from typing import Any, Iterable, Sequence

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest  # noqa: E402

from pairclip.config import PipelineConfig  # noqa: E402
from pairclip.engine import FFmpegEngine  # noqa: E402
from pairclip.errors import EngineError  # noqa: E402


class FakeEngine(FFmpegEngine):
    """Engine double that writes placeholder files instead of running ffmpeg."""

    def __init__(
        self,
        config: PipelineConfig,
        no_video: Iterable[str] = (),
        fail_segment: Iterable[str] = (),
        fail_merge: Iterable[str] = (),
    ) -> None:
        super().__init__(config)
        self.no_video = set(no_video)
        self.fail_segment = set(fail_segment)
        self.fail_merge = set(fail_merge)
        self.segment_calls: list[tuple[Path, float, float, Path]] = []
        self.merge_calls: list[tuple[list[Path], str, Path]] = []
        self._lock = threading.Lock()

    def missing_tools(self) -> list[str]:
        return []

    def transcode_segment(
        self, src: Path, start: float, duration: float, out: Path
    ) -> None:
        with self._lock:
            self.segment_calls.append((src, start, duration, out))
        if any(marker in out.name for marker in self.fail_segment):
            out.write_bytes(b"trunc")
            raise EngineError("ffmpeg failed", ["ffmpeg"], 1, "boom")
        out.write_bytes(b"segment")

    def probe_streams(self, path: Path) -> list[dict[str, Any]]:
        if path.name in self.no_video:
            return [{"codec_type": "audio"}]
        return [{"codec_type": "video"}, {"codec_type": "audio"}]

    def filtered_transcode(
        self,
        inputs: Sequence[Path],
        filter_graph: str,
        output_args: Sequence[str],
        out: Path,
    ) -> None:
        self.merge_calls.append((list(inputs), filter_graph, out))
        if any(marker in str(p) for marker in self.fail_merge for p in inputs):
            raise EngineError("ffmpeg failed", ["ffmpeg"], 1, "merge boom")
        out.write_bytes(b"merged")


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(root=tmp_path, concurrency=2)


@pytest.fixture
def fake_engine(config: PipelineConfig) -> FakeEngine:
    return FakeEngine(config)


def make_inputs(config: PipelineConfig, collection: str, *names: str) -> list[Path]:
    directory = config.collection_dir(collection)
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        path = directory / name
        path.write_bytes(b"video")
        paths.append(path)
    return paths
