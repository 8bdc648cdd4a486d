"""Stitch matching segments of a pair into letterboxed composite clips.

Indices are processed one at a time. A missing segment or a segment without
a video stream skips that index; any failure while writing or committing an
output aborts the rest of the merge with ``MergeFatalError``.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pairclip.config import PipelineConfig
from pairclip.engine import FFmpegEngine
from pairclip.errors import EngineError, MergeFatalError
from pairclip.workspace import ensure_writable


@dataclass
class PipelineOutcome:
    success: bool = False
    outputs: list[Path] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    output_dir: Optional[Path] = None

    def __bool__(self) -> bool:
        return self.success


def letterbox_filter(src: str, out: str, width: int, height: int) -> str:
    return (
        f"[{src}]scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1[{out}]"
    )


def build_filter_graph(width: int, height: int) -> str:
    """Scale and pad both inputs to the frame, then concatenate video only."""

    return ";".join(
        [
            letterbox_filter("0:v", "v0", width, height),
            letterbox_filter("1:v", "v1", width, height),
            "[v0][v1]concat=n=2:v=1:a=0[v]",
        ]
    )


def merge_output_args(width: int, height: int) -> list[str]:
    return [
        "-map",
        "[v]",
        "-c:v",
        "libx264",
        "-preset",
        "ultrafast",
        "-crf",
        "23",
        "-pix_fmt",
        "yuv420p",
        "-s",
        f"{width}x{height}",
        "-an",
    ]


class ClipMerger:
    def __init__(self, config: PipelineConfig, engine: FFmpegEngine) -> None:
        self.config = config
        self.engine = engine

    def _streams_ok(self, clip_a: Path, clip_b: Path, number: int) -> bool:
        try:
            has_a = self.engine.has_video_stream(clip_a)
            has_b = self.engine.has_video_stream(clip_b)
        except EngineError as exc:
            logging.warning("skipping clip %02d: cannot probe streams: %s", number, exc)
            return False
        if not (has_a and has_b):
            logging.warning(
                "skipping clip %02d: missing video stream in %s",
                number,
                ", ".join(p.name for p, ok in ((clip_a, has_a), (clip_b, has_b)) if not ok),
            )
            return False
        return True

    def _commit_one(self, clip_a: Path, clip_b: Path, final: Path, number: int) -> None:
        cfg = self.config
        tmp = cfg.temp_dir / f"temp_{time.time_ns()}_clip{number:02d}.{cfg.clip_ext}"
        try:
            self.engine.filtered_transcode(
                [clip_a, clip_b],
                build_filter_graph(cfg.frame_width, cfg.frame_height),
                merge_output_args(cfg.frame_width, cfg.frame_height),
                tmp,
            )
            if tmp.stat().st_size == 0:
                raise MergeFatalError(number, "temporary output file is empty")
            os.replace(tmp, final)
        except MergeFatalError:
            with suppress(FileNotFoundError):
                tmp.unlink()
            raise
        except (EngineError, OSError) as exc:
            with suppress(FileNotFoundError):
                tmp.unlink()
            raise MergeFatalError(number, str(exc)) from exc

    def merge(
        self,
        clips_a: Path,
        clips_b: Path,
        output_dir: Path,
        prefix_a: str,
        prefix_b: str,
    ) -> PipelineOutcome:
        """Merge every available segment index into *output_dir*.

        Returns a successful outcome once the loop completes, even when some
        indices were skipped; raises ``MergeFatalError`` otherwise. A final
        clip already present under its name is replaced.
        """

        cfg = self.config
        ensure_writable(output_dir)
        ensure_writable(cfg.temp_dir)

        outcome = PipelineOutcome(output_dir=output_dir)
        for i in range(cfg.clip_count):
            number = i + 1
            clip_a = clips_a / cfg.clip_name(prefix_a, i)
            clip_b = clips_b / cfg.clip_name(prefix_b, i)
            final = output_dir / cfg.final_name(i)

            if not (clip_a.exists() and clip_b.exists()):
                logging.warning(
                    "missing input clips for index %02d: %s, %s", number, clip_a, clip_b
                )
                outcome.skipped.append(number)
                continue
            if not self._streams_ok(clip_a, clip_b, number):
                outcome.skipped.append(number)
                continue

            try:
                self._commit_one(clip_a, clip_b, final, number)
            except MergeFatalError:
                logging.error(
                    "failed to merge clips for %s and %s at index %02d",
                    prefix_a,
                    prefix_b,
                    number,
                )
                raise
            logging.info("created %s", final)
            outcome.outputs.append(final)

        outcome.success = True
        return outcome
