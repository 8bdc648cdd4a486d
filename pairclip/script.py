#!/usr/bin/env python3
"""Pair product and selfie videos and build letterboxed side-by-side clips.

For every matched pair: split both inputs into fixed-length segments, merge
matching segments into ``output/<NN>_<a>_<b>/final_clip<NN>.mp4`` and move the
inputs to ``completed/``. Pairs run one after another; a failing pair is
rolled back and the run continues with the next one.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from pairclip.completion import CompletionManager
from pairclip.config import (
    COLLECTION_A,
    COLLECTION_B,
    DEFAULT_CLIP_COUNT,
    DEFAULT_CLIP_DURATION,
    DEFAULT_FRAME,
    PipelineConfig,
    default_concurrency,
    parse_frame,
)
from pairclip.engine import FFmpegEngine
from pairclip.errors import (
    DiscoveryError,
    PipelineError,
    ValidationError,
    WritePermissionError,
)
from pairclip.merger import ClipMerger, PipelineOutcome
from pairclip.pairs import Pair, resolve_pairs, validate_pair
from pairclip.splitter import ClipSplitter
from pairclip.workspace import PairWorkspace, ensure_folders


@dataclass
class RunSummary:
    pairs: int = 0
    succeeded: int = 0
    failed: int = 0
    invalid: int = 0
    outputs: list[Path] = field(default_factory=list)


class PairPipeline:
    def __init__(self, config: PipelineConfig, engine: FFmpegEngine | None = None) -> None:
        self.config = config
        self.engine = engine or FFmpegEngine(config)
        self.splitter = ClipSplitter(config, self.engine)
        self.merger = ClipMerger(config, self.engine)
        self.completion = CompletionManager(config)

    def process_pair(self, pair: Pair) -> PipelineOutcome:
        """Run split, merge and commit for one pair.

        Stage failures are rolled back and reported through the returned
        outcome. ``ValidationError`` is raised before anything is written.
        """

        try:
            validate_pair(pair)
        except ValidationError as exc:
            logging.error("invalid pair %s and %s: %s", pair.name_a, pair.name_b, exc)
            raise

        ws = PairWorkspace.for_pair(self.config, pair)
        logging.info("processing pair %d: %s and %s", pair.index + 1, pair.name_a, pair.name_b)
        try:
            logging.info("splitting %s...", pair.name_a)
            self.splitter.split(pair.source_a, ws.clips_a, pair.name_a)
            logging.info("splitting %s...", pair.name_b)
            self.splitter.split(pair.source_b, ws.clips_b, pair.name_b)
            logging.info("merging clips for %s and %s...", pair.name_a, pair.name_b)
            outcome = self.merger.merge(
                ws.clips_a, ws.clips_b, ws.output_dir, pair.name_a, pair.name_b
            )
        except (PipelineError, OSError) as exc:
            logging.error(
                "error processing pair %s and %s: %s", pair.name_a, pair.name_b, exc
            )
            self.completion.rollback(pair, ws)
            return PipelineOutcome(success=False)

        self.completion.commit(pair, outcome, ws)
        if outcome.skipped:
            logging.warning(
                "pair %s and %s: skipped clip(s) %s",
                pair.name_a,
                pair.name_b,
                ", ".join(f"{n:02d}" for n in outcome.skipped),
            )
        logging.info("completed pair: %s and %s", pair.name_a, pair.name_b)
        return outcome

    def run(self, dry_run: bool = False) -> RunSummary:
        """Bootstrap the workspace, resolve pairs and process them in order.

        ``DiscoveryError`` and ``WritePermissionError`` propagate before any
        pair is touched.
        """

        ensure_folders(self.config)
        resolution = resolve_pairs(self.config.input_dir)
        summary = RunSummary(pairs=len(resolution.pairs))
        if not resolution.pairs:
            logging.warning(
                "no pairs to process; add videos to %s and %s",
                self.config.collection_dir(COLLECTION_A),
                self.config.collection_dir(COLLECTION_B),
            )
            return summary
        if dry_run:
            return summary

        for pair in resolution.pairs:
            try:
                outcome = self.process_pair(pair)
            except ValidationError:
                summary.invalid += 1
                continue
            if outcome:
                summary.succeeded += 1
                summary.outputs.append(outcome.output_dir)
            else:
                summary.failed += 1
        return summary


def build_config(args: argparse.Namespace) -> PipelineConfig:
    width, height = parse_frame(args.frame)
    return PipelineConfig(
        root=Path(args.root),
        clip_count=args.clip_count,
        clip_duration=args.clip_duration,
        concurrency=args.concurrency,
        frame_width=width,
        frame_height=height,
        ffmpeg=args.ffmpeg,
        ffprobe=args.ffprobe,
        engine_timeout=args.engine_timeout,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(
        description="Pair product/selfie videos, cut them into clips and merge matching clips."
    )
    ap.add_argument(
        "--root",
        default=os.getenv("PAIRCLIP_ROOT", "."),
        help="Workspace root holding input/, clips/, output/, completed/ and temp/.",
    )
    ap.add_argument(
        "--clip-count",
        type=int,
        default=os.getenv("CLIP_COUNT", str(DEFAULT_CLIP_COUNT)),
        help="Segments cut from each input (default 30).",
    )
    ap.add_argument(
        "--clip-duration",
        type=int,
        default=os.getenv("CLIP_DURATION", str(DEFAULT_CLIP_DURATION)),
        help="Segment length in SECONDS (default 4).",
    )
    ap.add_argument(
        "--concurrency",
        type=int,
        default=os.getenv("CONCURRENCY", str(default_concurrency())),
        help="Parallel segment encodes (default: half the CPUs, at least 2).",
    )
    ap.add_argument(
        "--frame",
        default=os.getenv("FRAME", DEFAULT_FRAME),
        help="Canonical output frame WxH (default 1080x1920).",
    )
    ap.add_argument(
        "--engine-timeout",
        type=float,
        default=os.getenv("ENGINE_TIMEOUT") or None,
        help="Kill an ffmpeg/ffprobe call after this many seconds (default: no limit).",
    )
    ap.add_argument("--ffmpeg", default=os.getenv("FFMPEG_BIN", "ffmpeg"))
    ap.add_argument("--ffprobe", default=os.getenv("FFPROBE_BIN", "ffprobe"))
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list the pairs that would be processed.",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv).",
    )
    args = ap.parse_args(argv)

    level = (
        logging.WARNING
        if args.verbose == 0
        else (logging.INFO if args.verbose == 1 else logging.DEBUG)
    )
    logging.basicConfig(
        level=level, stream=sys.stderr, format="%(levelname)s: %(message)s"
    )

    try:
        config = build_config(args)
    except ValueError as exc:
        logging.error("invalid configuration: %s", exc)
        sys.exit(2)

    engine = FFmpegEngine(config)
    missing = engine.missing_tools()
    if missing and not args.dry_run:
        logging.error("required command missing: %s", ", ".join(missing))
        sys.exit(1)

    pipeline = PairPipeline(config, engine)
    try:
        summary = pipeline.run(dry_run=args.dry_run)
    except (DiscoveryError, WritePermissionError) as exc:
        logging.error("%s", exc)
        sys.exit(1)

    if args.dry_run:
        logging.info("dry run: %d pair(s) found", summary.pairs)
        return
    for out_dir in summary.outputs:
        print(out_dir.name)
    if summary.failed or summary.invalid:
        logging.warning(
            "%d of %d pair(s) failed, %d invalid",
            summary.failed,
            summary.pairs,
            summary.invalid,
        )
    else:
        logging.info("all %d pair(s) processed", summary.pairs)


if __name__ == "__main__":  # pragma: no cover - entrypoint
    main()
