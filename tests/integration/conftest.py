"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path

import pytest

from asciivid.config import PipelineConfig


def _require_ffmpeg() -> None:
    if shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None:
        pytest.skip("ffmpeg/ffprobe not installed")


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _generate(output: Path, with_audio: bool) -> Path:
    cmd = [
        "ffmpeg", "-hide_banner", "-loglevel", "error", "-y",
        "-f", "lavfi", "-i", "testsrc=duration=1:size=160x90:rate=10",
    ]
    if with_audio:
        cmd += ["-f", "lavfi", "-i", "sine=frequency=440:duration=1", "-shortest"]
    cmd += ["-pix_fmt", "yuv420p", str(output)]
    subprocess.run(cmd, check=True, capture_output=True, timeout=60)
    return output


@pytest.fixture
def sample_video(temp_dir: Path) -> Path:
    """One second of test pattern at 10 fps with a sine soundtrack."""
    _require_ffmpeg()
    return _generate(temp_dir / "sample.mp4", with_audio=True)


@pytest.fixture
def silent_video(temp_dir: Path) -> Path:
    """One second of test pattern without an audio stream."""
    _require_ffmpeg()
    return _generate(temp_dir / "silent.mp4", with_audio=False)


@pytest.fixture
def integration_config(temp_dir: Path) -> PipelineConfig:
    return PipelineConfig(
        output_width=40,
        output_fps=10,
        work_dir=temp_dir / "work",
        cache_file=temp_dir / ".asciivid_cache",
        show_progress=False,
        tool_timeout=120,
    )
