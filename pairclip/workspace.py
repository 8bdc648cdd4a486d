"""Workspace directory bootstrap and write probes."""

from __future__ import annotations

import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from pairclip.config import COLLECTION_A, COLLECTION_B, PipelineConfig
from pairclip.errors import WritePermissionError
from pairclip.identity import sanitize_name
from pairclip.pairs import Pair

PROBE_NAME = ".write-test"
FALLBACK_NAME = "unnamed"


def utc_ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def unused_dir(path: Path) -> Path:
    """*path*, or a timestamped sibling of it when *path* is already taken."""

    if not path.exists():
        return path
    candidate = path.with_name(f"{path.name}_{utc_ts()}")
    i = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}_{utc_ts()}_{i}")
        i += 1
    return candidate


def ensure_writable(directory: Path) -> None:
    """Create *directory* if needed and prove it accepts new files."""

    probe = directory / PROBE_NAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe.write_text("test", encoding="utf-8")
        probe.unlink()
    except OSError as exc:
        with suppress(OSError):
            probe.unlink()
        raise WritePermissionError(str(directory), exc.strerror or str(exc)) from exc


def ensure_folders(config: PipelineConfig) -> None:
    for directory in config.workspace_dirs():
        ensure_writable(directory)
        logging.debug("workspace ok: %s", directory)


@dataclass(frozen=True)
class PairWorkspace:
    """Scratch and output locations owned by a single pair."""

    clips_a: Path
    clips_b: Path
    output_dir: Path

    @classmethod
    def for_pair(cls, config: PipelineConfig, pair: Pair) -> "PairWorkspace":
        """Locations for *pair*; the output directory never reuses an existing one."""

        limit = config.name_limit
        safe_a = sanitize_name(pair.name_a, limit) or FALLBACK_NAME
        safe_b = sanitize_name(pair.name_b, limit) or FALLBACK_NAME
        output_dir = config.output_dir / f"{pair.index + 1:02d}_{safe_a}_{safe_b}"
        return cls(
            clips_a=config.clips_dir / COLLECTION_A / safe_a,
            clips_b=config.clips_dir / COLLECTION_B / safe_b,
            output_dir=unused_dir(output_dir),
        )
