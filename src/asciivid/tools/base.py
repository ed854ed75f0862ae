"""Interfaces of the external tools driven by the pipeline.

The pipeline never shells out directly: it talks to a ``MediaTool`` (video
probe, decode, encode, audio) and an ``ImageTool`` (grayscale decode, glyph
rasterization). Tests swap both for in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence


class ToolError(Exception):
    """An external tool failed, timed out, or is not installed."""

    pass


@dataclass
class ProbeResult:
    """Video stream properties reported by a probe.

    ``width``/``height`` are None when the probe output lacked them. The frame
    rate is kept as a raw fraction; a zero denominator means "unknown".
    """

    width: int | None
    height: int | None
    frame_rate_num: int = 0
    frame_rate_den: int = 0


class MediaTool(Protocol):
    """Video and audio operations."""

    def probe(self, source: Path) -> ProbeResult:
        """Read the first video stream's dimensions and frame rate."""
        ...

    def extract_frames(
        self, source: Path, fps: int, width: int, height: int, pattern: Path
    ) -> None:
        """Write one image per frame, named by the printf-style ``pattern``."""
        ...

    def extract_audio(self, source: Path, output: Path) -> None:
        """Write the source's audio track as PCM WAV."""
        ...

    def compress_audio(self, source: Path, output: Path, audio_filter: str) -> None:
        """Apply a dynamics-compression filter to an audio file."""
        ...

    def encode_video(self, images: Sequence[Path], fps: int, output: Path) -> None:
        """Assemble ordered images into a video stream."""
        ...

    def combine(
        self, video: Path, audio: Path | None, bitrate: str, output: Path
    ) -> None:
        """Mux video with audio, or copy the video alone when ``audio`` is None."""
        ...


class ImageTool(Protocol):
    """Image operations."""

    def decode_gray(self, image: Path, width: int, height: int) -> bytes:
        """Return row-major 8-bit grayscale pixels, or ``b""`` on failure."""
        ...

    def rasterize(
        self,
        text_path: Path,
        output: Path,
        width: int,
        height: int,
        font_name: str,
        font_size: int,
        offset: tuple[int, int],
    ) -> None:
        """Draw a text grid onto a black image. Leaves no output on failure."""
        ...
