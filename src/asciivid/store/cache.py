"""Staleness cache for extracted frames.

The cache remembers which input the frames on disk were extracted from, and
which frames directory holds them. It is conservative: any doubt (missing
or malformed record, changed path, changed modification time, missing
input, another frames directory) reads as "stale" and only costs a
re-extraction.

Several working directories may share one cache file. The record vouches
for a single frames directory, so frames left in any other directory are
never reused on its strength.

Modification times are compared at nanosecond resolution, but filesystems
with coarse timestamps can miss an edit that lands within the same tick.
That is a known limitation; inputs are not content-hashed.

The record is read and written without locking. Two processes converting
the same input concurrently are not supported.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheRecord:
    """Fingerprint of an input at extraction time."""

    input_identity: str
    input_modification_stamp: str
    frames_identity: str


def input_identity(input_path: Path) -> str:
    """Stable identity of a file or directory: its absolute, resolved path."""
    return str(Path(input_path).resolve())


def modification_stamp(input_path: Path) -> str | None:
    """Current modification stamp of an input, or None if it cannot be read."""
    try:
        return str(os.stat(input_path).st_mtime_ns)
    except OSError:
        return None


class StalenessCache:
    """Three-line record file: input identity, modification stamp, frames directory."""

    def __init__(self, cache_file: Path) -> None:
        self.cache_file = Path(cache_file)

    def load(self) -> CacheRecord | None:
        """Read the persisted record, or None if absent or malformed."""
        try:
            lines = self.cache_file.read_text().splitlines()
        except (OSError, UnicodeDecodeError):
            return None

        if len(lines) < 3 or not all(lines[:3]):
            return None

        return CacheRecord(
            input_identity=lines[0],
            input_modification_stamp=lines[1],
            frames_identity=lines[2],
        )

    def is_valid(self, input_path: Path, frames_dir: Path) -> bool:
        """Whether the frames in ``frames_dir`` may be reused for ``input_path``."""
        record = self.load()
        if record is None:
            return False

        if record.frames_identity != input_identity(frames_dir):
            logger.debug(f"Cache vouches for another frames directory: {record.frames_identity}")
            return False

        if record.input_identity != input_identity(input_path):
            logger.debug(f"Cache identity mismatch: {record.input_identity}")
            return False

        stamp = modification_stamp(input_path)
        if stamp is None:
            return False

        return stamp == record.input_modification_stamp

    def save(self, input_path: Path, frames_dir: Path) -> None:
        """Record ``input_path`` as the source of the frames in ``frames_dir``.

        Call only after extraction fully succeeded. The record is written to a
        temporary file and renamed over the old one.

        Raises:
            FileNotFoundError: If the input no longer exists.
        """
        stamp = modification_stamp(input_path)
        if stamp is None:
            raise FileNotFoundError(f"Cannot fingerprint missing input: {input_path}")

        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.cache_file.with_name(self.cache_file.name + ".tmp")
        tmp_path.write_text(
            f"{input_identity(input_path)}\n{stamp}\n{input_identity(frames_dir)}\n"
        )
        os.replace(tmp_path, self.cache_file)

    def clear(self) -> None:
        """Forget the persisted record."""
        self.cache_file.unlink(missing_ok=True)
