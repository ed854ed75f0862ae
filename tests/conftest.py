"""Pytest configuration and fixtures for asciivid tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Sequence

import pytest
from PIL import Image

from asciivid.config import PipelineConfig
from asciivid.tools.base import ProbeResult, ToolError


class FakeMediaTool:
    """In-memory MediaTool recording every call.

    ``fail`` names the operations that raise ToolError: "probe", "extract",
    "audio", "compress", "encode", "combine".
    """

    def __init__(
        self,
        width: int | None = 300,
        height: int | None = 200,
        frame_rate: tuple[int, int] = (30, 1),
        frame_count: int = 10,
        frame_value: int = 128,
        fail: set[str] | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.frame_rate = frame_rate
        self.frame_count = frame_count
        self.frame_value = frame_value
        self.fail = fail or set()
        self.calls: list[tuple[str, tuple]] = []

    def calls_to(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    def _check(self, operation: str) -> None:
        if operation in self.fail:
            raise ToolError(f"{operation} failed")

    def probe(self, source: Path) -> ProbeResult:
        self.calls.append(("probe", (source,)))
        self._check("probe")
        return ProbeResult(
            width=self.width,
            height=self.height,
            frame_rate_num=self.frame_rate[0],
            frame_rate_den=self.frame_rate[1],
        )

    def extract_frames(
        self, source: Path, fps: int, width: int, height: int, pattern: Path
    ) -> None:
        self.calls.append(("extract_frames", (source, fps, width, height, pattern)))
        self._check("extract")
        for i in range(1, self.frame_count + 1):
            Image.new("L", (width, height), self.frame_value).save(str(pattern) % i)

    def extract_audio(self, source: Path, output: Path) -> None:
        self.calls.append(("extract_audio", (source, output)))
        self._check("audio")
        output.write_bytes(b"RIFF raw audio")

    def compress_audio(self, source: Path, output: Path, audio_filter: str) -> None:
        self.calls.append(("compress_audio", (source, output, audio_filter)))
        self._check("compress")
        output.write_bytes(b"RIFF compressed audio")

    def encode_video(self, images: Sequence[Path], fps: int, output: Path) -> None:
        self.calls.append(("encode_video", (list(images), fps, output)))
        self._check("encode")
        output.write_bytes(b"video stream")

    def combine(self, video: Path, audio: Path | None, bitrate: str, output: Path) -> None:
        self.calls.append(("combine", (video, audio, bitrate, output)))
        self._check("combine")
        output.write_bytes(b"final video")


class FakeImageTool:
    """In-memory ImageTool returning a constant gray level."""

    def __init__(self, value: int = 128, fail_decode: bool = False, fail_rasterize: bool = False) -> None:
        self.value = value
        self.fail_decode = fail_decode
        self.fail_rasterize = fail_rasterize
        self.decoded: list[Path] = []
        self.rasterized: list[Path] = []

    def decode_gray(self, image: Path, width: int, height: int) -> bytes:
        self.decoded.append(image)
        if self.fail_decode:
            return b""
        return bytes([self.value]) * (width * height)

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
        self.rasterized.append(text_path)
        if self.fail_rasterize:
            return
        output.write_bytes(b"png:" + text_path.read_bytes()[:16])


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_video_path(temp_dir: Path) -> Path:
    """Create a mock video file.

    The file is never decoded; fakes stand in for ffmpeg.
    """
    video_path = temp_dir / "test_video.mp4"
    video_path.write_bytes(b"mock video content for testing")
    return video_path


@pytest.fixture
def config(temp_dir: Path) -> PipelineConfig:
    """Config isolated in the temp dir, 120 columns, 4-character ramp."""
    return PipelineConfig(
        ascii_chars=" .oO",
        output_width=120,
        work_dir=temp_dir / "work",
        cache_file=temp_dir / ".asciivid_cache",
        ascii_batch_size=4,
        render_batch_size=3,
        show_progress=False,
    )


@pytest.fixture
def media() -> FakeMediaTool:
    return FakeMediaTool()


@pytest.fixture
def image_tool() -> FakeImageTool:
    return FakeImageTool()


@pytest.fixture
def make_media() -> type[FakeMediaTool]:
    """Factory for FakeMediaTool variants."""
    return FakeMediaTool


@pytest.fixture
def make_image_tool() -> type[FakeImageTool]:
    """Factory for FakeImageTool variants."""
    return FakeImageTool
