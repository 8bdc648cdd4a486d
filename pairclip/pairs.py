"""Match files from the two input collections into processing pairs.

Files are grouped by the identity token in their name. Within an identity,
both sides are sorted by ordering key and matched positionally; leftovers are
reported, never reused. The result is a static, deterministic snapshot: the
same set of files always yields the same pairs in the same order.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from pairclip.config import COLLECTION_A, COLLECTION_B
from pairclip.errors import DiscoveryError, ValidationError
from pairclip.identity import (
    VIDEO_EXTS,
    extract_identity,
    extract_order_key,
    is_video_file,
)


@dataclass(frozen=True)
class SourceFile:
    path: Path
    collection: str
    identity: str
    order_key: str
    ext: str

    @classmethod
    def from_path(cls, path: Path, collection: str) -> "SourceFile":
        name = path.name
        return cls(
            path=path,
            collection=collection,
            identity=extract_identity(name),
            order_key=extract_order_key(name),
            ext=path.suffix,
        )

    @property
    def display_name(self) -> str:
        return self.path.stem


@dataclass(frozen=True)
class Pair:
    source_a: Path
    source_b: Path
    name_a: str
    name_b: str
    identity: str
    index: int


IdentityGroup = dict[str, list[SourceFile]]


@dataclass
class UsageSet:
    """Paths already claimed by a pair, per collection."""

    a: set[Path] = field(default_factory=set)
    b: set[Path] = field(default_factory=set)

    def is_free(self, file_a: Path, file_b: Path) -> bool:
        return file_a not in self.a and file_b not in self.b

    def claim(self, file_a: Path, file_b: Path) -> None:
        self.a.add(file_a)
        self.b.add(file_b)


@dataclass
class PairResolution:
    pairs: list[Pair] = field(default_factory=list)
    unmatched_a: dict[str, int] = field(default_factory=dict)
    unmatched_b: dict[str, int] = field(default_factory=dict)
    skipped_a: list[Path] = field(default_factory=list)
    skipped_b: list[Path] = field(default_factory=list)

    def log_summary(self, name_a: str = COLLECTION_A, name_b: str = COLLECTION_B) -> None:
        if not self.pairs:
            logging.warning("no valid pairs found")
            logging.warning(
                "files are paired by identity and ordering prefix: "
                "'<order> - <identity>.<ext>'"
            )
        else:
            logging.info("found %d pair(s)", len(self.pairs))
            for pair in self.pairs:
                logging.info("pair %d (%s):", pair.index + 1, pair.identity)
                logging.info("  %s: %s", name_a, pair.name_a)
                logging.info("  %s: %s", name_b, pair.name_b)
        for label, unmatched in ((name_a, self.unmatched_a), (name_b, self.unmatched_b)):
            for identity, count in unmatched.items():
                logging.warning(
                    "unmatched %s identity %r: %d file(s)", label, identity, count
                )
        for label, skipped in ((name_a, self.skipped_a), (name_b, self.skipped_b)):
            if skipped:
                logging.warning(
                    "%d %s file(s) skipped to keep pairing one-to-one", len(skipped), label
                )
                for path in skipped:
                    logging.info("  skipped: %s", path.name)


def list_videos(directory: Path, collection: str) -> list[SourceFile]:
    """Supported video files in *directory*, sorted by filename."""

    try:
        names = sorted(os.listdir(directory))
    except OSError as exc:
        raise DiscoveryError(f"cannot read {collection} folder {directory}: {exc}") from exc
    files: list[SourceFile] = []
    for name in names:
        path = directory / name
        if is_video_file(name) and path.is_file():
            files.append(SourceFile.from_path(path, collection))
    return files


def group_by_identity(files: list[SourceFile]) -> IdentityGroup:
    groups: IdentityGroup = {}
    for f in files:
        groups.setdefault(f.identity, []).append(f)
    return groups


def _ordered(group: list[SourceFile]) -> list[SourceFile]:
    return sorted(group, key=lambda f: (f.order_key, f.path.name))


def match_groups(groups_a: IdentityGroup, groups_b: IdentityGroup) -> PairResolution:
    """Pair two identity groupings positionally, one file per pair at most."""

    result = PairResolution()
    usage = UsageSet()
    for identity, group_a in groups_a.items():
        group_b = groups_b.get(identity)
        if not group_b:
            continue
        ordered_a = _ordered(group_a)
        ordered_b = _ordered(group_b)
        for fa, fb in zip(ordered_a, ordered_b):
            if not usage.is_free(fa.path, fb.path):
                continue
            if not (fa.path.exists() and fb.path.exists()):
                logging.warning(
                    "pair candidate vanished: %s / %s", fa.path.name, fb.path.name
                )
                continue
            result.pairs.append(
                Pair(
                    source_a=fa.path,
                    source_b=fb.path,
                    name_a=fa.display_name,
                    name_b=fb.display_name,
                    identity=identity,
                    index=len(result.pairs),
                )
            )
            usage.claim(fa.path, fb.path)
        result.skipped_a += [f.path for f in ordered_a if f.path not in usage.a]
        result.skipped_b += [f.path for f in ordered_b if f.path not in usage.b]

    result.unmatched_a = {
        identity: len(group)
        for identity, group in groups_a.items()
        if identity not in groups_b
    }
    result.unmatched_b = {
        identity: len(group)
        for identity, group in groups_b.items()
        if identity not in groups_a
    }
    return result


def resolve_pairs(
    input_dir: Path, collection_a: str = COLLECTION_A, collection_b: str = COLLECTION_B
) -> PairResolution:
    """Discover both collections under *input_dir* and match them into pairs."""

    if not input_dir.is_dir():
        raise DiscoveryError(f"input directory missing: {input_dir}")
    files_a = list_videos(input_dir / collection_a, collection_a)
    files_b = list_videos(input_dir / collection_b, collection_b)

    formats = ", ".join(VIDEO_EXTS)
    if not files_a and not files_b:
        logging.warning(
            "no video files found in either %s or %s folders", collection_a, collection_b
        )
        logging.warning("supported formats: %s", formats)
        return PairResolution()
    for label, files in ((collection_a, files_a), (collection_b, files_b)):
        if not files:
            logging.warning(
                "no video files found in %s; add videos to %s",
                label,
                input_dir / label,
            )
            return PairResolution()

    result = match_groups(group_by_identity(files_a), group_by_identity(files_b))
    result.log_summary(collection_a, collection_b)
    return result


def validate_pair(pair: Pair) -> None:
    """Raise ``ValidationError`` unless both files exist, are non-empty and readable."""

    for path in (pair.source_a, pair.source_b):
        try:
            size = path.stat().st_size
        except FileNotFoundError as exc:
            raise ValidationError(f"missing input: {path}") from exc
        except OSError as exc:
            raise ValidationError(f"cannot stat {path}: {exc}") from exc
        if size == 0:
            raise ValidationError(f"empty input: {path}")
        if not os.access(path, os.R_OK):
            raise ValidationError(f"unreadable input: {path}")
