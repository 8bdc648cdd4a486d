"""Relocate finished inputs and clear per-pair scratch space."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pairclip.config import COLLECTION_A, COLLECTION_B, PipelineConfig
from pairclip.merger import PipelineOutcome
from pairclip.pairs import Pair
from pairclip.workspace import PairWorkspace, utc_ts


def resolve_completed_path(target_dir: Path, name: str) -> Path:
    """Destination for *name* in *target_dir* that never replaces a file."""

    path = target_dir / name
    if not path.exists():
        return path
    stem, ext = path.stem, path.suffix
    path = target_dir / f"{stem}_{utc_ts()}{ext}"
    i = 1
    while path.exists():
        path = target_dir / f"{stem}_{utc_ts()}_{i}{ext}"
        i += 1
    return path


def remove_tree(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as exc:
        logging.error("failed to remove %s: %s", path, exc)
        return
    logging.debug("deleted %s", path)


class CompletionManager:
    def __init__(self, config: PipelineConfig) -> None:
        self.config = config

    def move_to_completed(self, src: Path, collection: str) -> Path | None:
        target_dir = self.config.completed_collection_dir(collection)
        target_dir.mkdir(parents=True, exist_ok=True)
        dest = resolve_completed_path(target_dir, src.name)
        try:
            shutil.move(str(src), str(dest))
        except OSError as exc:
            logging.error("failed to move %s to %s: %s", src, dest, exc)
            return None
        logging.info("moved %s to completed/%s/%s", src.name, collection, dest.name)
        return dest

    def commit(
        self, pair: Pair, outcome: PipelineOutcome, workspace: PairWorkspace
    ) -> None:
        """Finish a pair: relocate inputs on success, roll back on failure.

        Segment scratch directories are removed either way.
        """

        if outcome.success:
            self.move_to_completed(pair.source_a, COLLECTION_A)
            self.move_to_completed(pair.source_b, COLLECTION_B)
        else:
            logging.warning(
                "not moving %s and %s to completed; removing partial output %s",
                pair.name_a,
                pair.name_b,
                workspace.output_dir,
            )
            remove_tree(workspace.output_dir)
        remove_tree(workspace.clips_a)
        remove_tree(workspace.clips_b)

    def rollback(self, pair: Pair, workspace: PairWorkspace) -> None:
        self.commit(pair, PipelineOutcome(success=False), workspace)
