"""Blocking wrappers around the ffmpeg/ffprobe command line tools.

Each call runs one process to completion and either returns a result or
raises ``EngineError`` carrying the command, return code and stderr.
"""

from __future__ import annotations

import json
import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any, Final, Sequence

from pairclip.config import PipelineConfig
from pairclip.errors import EngineError

SEGMENT_CODEC_ARGS: Final = ["-c:v", "libx264", "-c:a", "aac"]
FFMPEG_BASE_ARGS: Final = ["-hide_banner", "-nostdin", "-loglevel", "error"]


def _print_command(cmd: Sequence[str]) -> None:
    logging.debug("CMD: %s", " ".join(shlex.quote(str(c)) for c in cmd))


def _fmt_seconds(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".") or "0"


class FFmpegEngine:
    def __init__(self, config: PipelineConfig) -> None:
        self.ffmpeg = config.ffmpeg
        self.ffprobe = config.ffprobe
        self.timeout = config.engine_timeout

    def missing_tools(self) -> list[str]:
        return [exe for exe in (self.ffmpeg, self.ffprobe) if shutil.which(exe) is None]

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[bytes]:
        _print_command(cmd)
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = (exc.stderr or b"").decode("utf-8", "replace")
            raise EngineError(
                f"{cmd[0]} timed out after {self.timeout}s", cmd, None, stderr
            ) from exc
        except OSError as exc:
            raise EngineError(f"cannot run {cmd[0]}: {exc}", cmd) from exc
        if proc.returncode != 0:
            raise EngineError(
                f"{cmd[0]} failed",
                cmd,
                proc.returncode,
                proc.stderr.decode("utf-8", "replace"),
            )
        return proc

    def transcode_segment(
        self, src: Path, start: float, duration: float, out: Path
    ) -> None:
        """Encode ``duration`` seconds of *src* from ``start`` into *out*."""

        cmd = [
            self.ffmpeg,
            *FFMPEG_BASE_ARGS,
            "-y",
            "-ss",
            _fmt_seconds(start),
            "-t",
            _fmt_seconds(duration),
            "-i",
            str(src),
            *SEGMENT_CODEC_ARGS,
            str(out),
        ]
        self._run(cmd)

    def probe_streams(self, path: Path) -> list[dict[str, Any]]:
        cmd = [
            self.ffprobe,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]
        proc = self._run(cmd)
        stdout = proc.stdout.decode("utf-8", "replace")
        if not stdout.strip():
            return []
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise EngineError(f"unreadable ffprobe output for {path}", cmd) from exc
        return list(data.get("streams") or [])

    def has_video_stream(self, path: Path) -> bool:
        return any(s.get("codec_type") == "video" for s in self.probe_streams(path))

    def filtered_transcode(
        self,
        inputs: Sequence[Path],
        filter_graph: str,
        output_args: Sequence[str],
        out: Path,
    ) -> None:
        cmd = [self.ffmpeg, *FFMPEG_BASE_ARGS, "-y"]
        for path in inputs:
            cmd += ["-i", str(path)]
        cmd += ["-filter_complex", filter_graph, *output_args, str(out)]
        self._run(cmd)
