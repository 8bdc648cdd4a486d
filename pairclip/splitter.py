"""Cut a source video into fixed-length numbered segments."""

from __future__ import annotations

import logging
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from pairclip.config import PipelineConfig
from pairclip.engine import FFmpegEngine
from pairclip.errors import EngineError, SegmentError
from pairclip.scheduler import run_bounded


@dataclass(frozen=True)
class SegmentJob:
    source: Path
    destination: Path
    start: float
    duration: float

    @property
    def partial_path(self) -> Path:
        dest = self.destination
        return dest.with_name(f"{dest.stem}.part{dest.suffix}")


class ClipSplitter:
    def __init__(self, config: PipelineConfig, engine: FFmpegEngine) -> None:
        self.config = config
        self.engine = engine

    def plan(self, source: Path, dest_dir: Path, prefix: str) -> list[SegmentJob]:
        """Jobs for every segment whose final file does not exist yet."""

        cfg = self.config
        jobs: list[SegmentJob] = []
        for i in range(cfg.clip_count):
            dest = dest_dir / cfg.clip_name(prefix, i)
            if dest.exists():
                logging.debug("skip done: %s", dest)
                continue
            jobs.append(
                SegmentJob(
                    source=source,
                    destination=dest,
                    start=float(i * cfg.clip_duration),
                    duration=float(cfg.clip_duration),
                )
            )
        return jobs

    def run_job(self, job: SegmentJob) -> None:
        partial = job.partial_path
        with suppress(FileNotFoundError):
            partial.unlink()
        try:
            self.engine.transcode_segment(job.source, job.start, job.duration, partial)
            if not partial.exists() or partial.stat().st_size == 0:
                raise EngineError(f"empty segment written for {job.destination.name}")
            os.replace(partial, job.destination)
        except EngineError as exc:
            with suppress(FileNotFoundError):
                partial.unlink()
            raise SegmentError(
                f"segment {job.destination.name}: {exc.args[0]}",
                exc.cmd,
                exc.returncode,
                exc.stderr,
            ) from exc
        except OSError:
            with suppress(FileNotFoundError):
                partial.unlink()
            raise
        logging.info("created %s", job.destination)

    def split(self, source: Path, dest_dir: Path, prefix: str) -> list[Path]:
        """Produce every missing segment of *source* under *dest_dir*.

        Existing segments are kept as-is. Returns the paths created by this
        call.
        """

        dest_dir.mkdir(parents=True, exist_ok=True)
        jobs = self.plan(source, dest_dir, prefix)
        done = self.config.clip_count - len(jobs)
        if done:
            logging.info(
                "%s: %d/%d segment(s) already present", prefix, done, self.config.clip_count
            )
        run_bounded(
            [lambda job=job: self.run_job(job) for job in jobs], self.config.concurrency
        )
        return [job.destination for job in jobs]
