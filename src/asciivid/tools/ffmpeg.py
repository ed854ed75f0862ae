"""FFmpeg-backed media tool.

Every operation is a blocking ``subprocess.run`` call; the pipeline does not
continue until the process exits.
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
from fractions import Fraction
from pathlib import Path
from typing import Sequence

from asciivid.tools.base import ProbeResult, ToolError

logger = logging.getLogger(__name__)

INSTALL_HINT = (
    "Please install FFmpeg:\n"
    "  Ubuntu/Debian: sudo apt install ffmpeg\n"
    "  macOS: brew install ffmpeg\n"
    "  Windows: choco install ffmpeg"
)


def _parse_frame_rate(value: str | None) -> tuple[int, int]:
    """Parse an ffprobe rate ("30/1", "30000/1001" or "29.97") into a fraction.

    Returns (0, 0) when the value cannot be parsed.
    """
    if not value:
        return 0, 0

    if "/" in value:
        num, _, den = value.partition("/")
        try:
            return int(num), int(den)
        except ValueError:
            return 0, 0

    try:
        rate = Fraction(value).limit_denominator(1001)
    except (ValueError, ZeroDivisionError):
        return 0, 0
    return rate.numerator, rate.denominator


def _parse_probe_output(stdout: str) -> ProbeResult:
    """Parse ffprobe JSON output into a ProbeResult.

    Args:
        stdout: Raw ffprobe output.

    Returns:
        ProbeResult; dimensions are None if the stream lacks them.

    Raises:
        ToolError: If the output is not valid JSON.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ToolError(f"Failed to parse ffprobe output: {e}") from e

    streams = data.get("streams") if isinstance(data, dict) else None
    if not streams:
        return ProbeResult(width=None, height=None)

    stream = streams[0]
    num, den = _parse_frame_rate(stream.get("r_frame_rate"))

    return ProbeResult(
        width=stream.get("width"),
        height=stream.get("height"),
        frame_rate_num=num,
        frame_rate_den=den,
    )


def _concat_entry(path: Path) -> str:
    """Quote a path for an ffconcat ``file`` directive."""
    escaped = str(path.absolute()).replace("'", "'\\''")
    return f"file '{escaped}'"


class FFmpegTool:
    """MediaTool implementation driving the ffmpeg/ffprobe binaries."""

    def __init__(
        self,
        ffmpeg: str = "ffmpeg",
        ffprobe: str = "ffprobe",
        timeout: float | None = None,
    ) -> None:
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self.timeout = timeout

    def _run(self, cmd: list[str], action: str) -> subprocess.CompletedProcess:
        """Run a command, translating every failure into ToolError."""
        logger.debug(f"Running: {' '.join(cmd)}")
        start_time = time.perf_counter()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise ToolError(f"{cmd[0]} not found. {INSTALL_HINT}")
        except subprocess.TimeoutExpired:
            raise ToolError(f"{action} timed out after {self.timeout}s")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise ToolError(f"{action} failed (exit code {result.returncode}): {stderr}")

        elapsed = time.perf_counter() - start_time
        logger.debug(f"{action} finished in {elapsed:.2f}s")
        return result

    def _ffmpeg(self, *args: str) -> list[str]:
        return [self.ffmpeg, "-hide_banner", "-loglevel", "error", "-y", *args]

    def probe(self, source: Path) -> ProbeResult:
        cmd = [
            self.ffprobe,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height,r_frame_rate",
            "-of", "json",
            str(source),
        ]
        result = self._run(cmd, "ffprobe")
        return _parse_probe_output(result.stdout)

    def extract_frames(
        self, source: Path, fps: int, width: int, height: int, pattern: Path
    ) -> None:
        self._run(
            self._ffmpeg(
                "-i", str(source),
                "-vf", f"fps={fps},scale={width}:{height}",
                str(pattern),
            ),
            "Frame extraction",
        )

    def extract_audio(self, source: Path, output: Path) -> None:
        self._run(
            self._ffmpeg(
                "-i", str(source),
                "-vn",  # No video
                "-acodec", "pcm_s16le",
                str(output),
            ),
            "Audio extraction",
        )

    def compress_audio(self, source: Path, output: Path, audio_filter: str) -> None:
        self._run(
            self._ffmpeg("-i", str(source), "-af", audio_filter, str(output)),
            "Audio compression",
        )

    def encode_video(self, images: Sequence[Path], fps: int, output: Path) -> None:
        """Encode images in the given order through the ffconcat demuxer."""
        if not images:
            raise ToolError("Video encoding failed: no images to encode")

        duration = 1.0 / fps
        lines = ["ffconcat version 1.0"]
        for image in images:
            lines.append(_concat_entry(image))
            lines.append(f"duration {duration:.6f}")
        # The concat demuxer ignores the duration of the last entry unless it is repeated
        lines.append(_concat_entry(images[-1]))

        list_path = output.with_suffix(".ffconcat")
        list_path.write_text("\n".join(lines) + "\n")

        self._run(
            self._ffmpeg(
                "-f", "concat",
                "-safe", "0",
                "-i", str(list_path),
                "-r", str(fps),
                "-c:v", "libx264",
                "-preset", "ultrafast",
                "-pix_fmt", "yuv420p",
                str(output),
            ),
            "Video encoding",
        )

    def combine(
        self, video: Path, audio: Path | None, bitrate: str, output: Path
    ) -> None:
        if audio is None:
            self._run(
                self._ffmpeg("-i", str(video), "-c", "copy", str(output)),
                "Video copy",
            )
            return

        self._run(
            self._ffmpeg(
                "-i", str(video),
                "-i", str(audio),
                "-c:v", "copy",
                "-c:a", "aac",
                "-b:a", bitrate,
                "-shortest",
                str(output),
            ),
            "Audio/video remux",
        )
