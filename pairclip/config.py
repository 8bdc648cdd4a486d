"""Immutable run configuration shared by every pipeline stage."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

COLLECTION_A: Final = "product"
COLLECTION_B: Final = "selfie"
COLLECTIONS: Final = (COLLECTION_A, COLLECTION_B)

DEFAULT_CLIP_COUNT: Final = 30
DEFAULT_CLIP_DURATION: Final = 4
DEFAULT_FRAME: Final = "1080x1920"
DEFAULT_CLIP_EXT: Final = "mp4"
DEFAULT_NAME_LIMIT: Final = 30


def default_concurrency() -> int:
    return max(2, (os.cpu_count() or 1) // 2)


def parse_frame(value: str) -> tuple[int, int]:
    """Parse a canonical frame like "1080x1920" or "1080:1920"."""

    text = value.strip().lower()
    for separator in ("x", ":"):
        if separator in text:
            lhs, rhs = text.split(separator, 1)
            width, height = int(lhs), int(rhs)
            break
    else:
        raise ValueError(f"frame must be WxH: {value!r}")
    if width <= 0 or height <= 0:
        raise ValueError("frame dimensions must be positive")
    return width, height


@dataclass(frozen=True)
class PipelineConfig:
    root: Path = field(default_factory=Path.cwd)
    clip_count: int = DEFAULT_CLIP_COUNT
    clip_duration: int = DEFAULT_CLIP_DURATION
    concurrency: int = field(default_factory=default_concurrency)
    frame_width: int = 1080
    frame_height: int = 1920
    clip_ext: str = DEFAULT_CLIP_EXT
    name_limit: int = DEFAULT_NAME_LIMIT
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    engine_timeout: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root).resolve())
        for name in ("clip_count", "clip_duration", "concurrency", "name_limit"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError("frame dimensions must be positive")
        if self.engine_timeout is not None and self.engine_timeout <= 0:
            raise ValueError("engine_timeout must be positive")
        object.__setattr__(self, "clip_ext", self.clip_ext.lstrip("."))

    @property
    def input_dir(self) -> Path:
        return self.root / "input"

    @property
    def clips_dir(self) -> Path:
        return self.root / "clips"

    @property
    def output_dir(self) -> Path:
        return self.root / "output"

    @property
    def completed_dir(self) -> Path:
        return self.root / "completed"

    @property
    def temp_dir(self) -> Path:
        return self.root / "temp"

    def collection_dir(self, collection: str) -> Path:
        return self.input_dir / collection

    def completed_collection_dir(self, collection: str) -> Path:
        return self.completed_dir / collection

    def workspace_dirs(self) -> list[Path]:
        """Every directory the pipeline writes into, in creation order."""

        dirs = [self.input_dir]
        dirs += [self.collection_dir(c) for c in COLLECTIONS]
        dirs += [self.clips_dir, self.output_dir, self.completed_dir]
        dirs += [self.completed_collection_dir(c) for c in COLLECTIONS]
        dirs.append(self.temp_dir)
        return dirs

    def clip_name(self, prefix: str, index: int) -> str:
        """Segment filename for the 0-based *index*."""

        return f"{prefix}_clip{index + 1:02d}.{self.clip_ext}"

    def final_name(self, index: int) -> str:
        return f"final_clip{index + 1:02d}.{self.clip_ext}"
