"""Index of per-frame artifacts keyed by sequence number.

The extractor writes ``frame_<seq>.png`` files; every later artifact of a
frame (its ASCII text and its rasterized image) is named after the frame
file, not discovered by matching file names. Zero padding keeps the files
readable in a directory listing, but ordering always comes from the parsed
integer.
"""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

FRAME_PATTERN = re.compile(r"^frame_(\d+)\.png$")


@dataclass(frozen=True)
class FrameEntry:
    """Artifacts of one source frame."""

    sequence: int
    frame_path: Path
    text_path: Path
    raster_path: Path

    @property
    def has_text(self) -> bool:
        return self.text_path.exists()

    @property
    def has_raster(self) -> bool:
        return self.raster_path.exists()


class FrameManifest:
    """Sequence-ordered view of the frames directory."""

    def __init__(self, frames_dir: Path, digits: int = 6) -> None:
        self.frames_dir = Path(frames_dir)
        self.digits = digits
        self.entries: list[FrameEntry] = []

    @property
    def extraction_pattern(self) -> Path:
        """printf-style pattern handed to the frame extractor."""
        return self.frames_dir / f"frame_%0{self.digits}d.png"

    def entry_for(self, sequence: int) -> FrameEntry:
        """Build the artifact paths of a frame written with this manifest's padding."""
        return self._entry(sequence, self.frames_dir / f"frame_{sequence:0{self.digits}d}.png")

    def _entry(self, sequence: int, frame_path: Path) -> FrameEntry:
        stem = frame_path.stem
        return FrameEntry(
            sequence=sequence,
            frame_path=frame_path,
            text_path=frame_path.with_name(f"{stem}.txt"),
            raster_path=frame_path.with_name(f"{stem}_ascii.png"),
        )

    def scan(self) -> list[FrameEntry]:
        """Index the extracted frames, ordered by sequence number.

        Only the extractor's output is read from the directory. Each entry
        keeps the frame file actually found, whatever its padding, and derives
        the text and raster paths from that file's name.
        """
        found: list[tuple[int, Path]] = []
        if self.frames_dir.is_dir():
            for path in self.frames_dir.iterdir():
                match = FRAME_PATTERN.match(path.name)
                if match and path.is_file():
                    found.append((int(match.group(1)), path))

        found.sort(key=lambda item: (item[0], item[1].name))
        self.entries = [self._entry(sequence, path) for sequence, path in found]
        return self.entries

    def reset(self) -> None:
        """Delete every artifact and start from an empty frames directory."""
        if self.frames_dir.exists():
            shutil.rmtree(self.frames_dir)
        self.frames_dir.mkdir(parents=True, exist_ok=True)
        self.entries = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[FrameEntry]:
        return iter(self.entries)

    def with_text(self) -> list[FrameEntry]:
        """Entries whose ASCII text exists."""
        return [entry for entry in self.entries if entry.has_text]

    def with_raster(self) -> list[FrameEntry]:
        """Entries whose rasterized image exists."""
        return [entry for entry in self.entries if entry.has_raster]
