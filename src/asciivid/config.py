"""Configuration and settings for asciivid pipelines."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ASCII_CHARS = " .,:;i1tfLCG08@"

DEFAULT_AUDIO_FILTER = (
    "compand=attacks=0.3:decays=1.0:points=-70/-60|-60/-40|-40/-30|-20/-20"
)


class PipelineConfig(BaseModel):
    """Configuration for an asciivid pipeline.

    The config is immutable; build a new one (or use ``model_copy(update=...)``)
    to change settings between runs.
    """

    model_config = ConfigDict(frozen=True)

    ascii_chars: str = Field(
        default=DEFAULT_ASCII_CHARS,
        min_length=2,
        description="Character ramp ordered from dimmest to brightest",
    )
    output_width: int = Field(default=120, gt=0, description="ASCII columns per frame")
    output_fps: int = Field(default=30, gt=0, description="Target frame rate")
    audio_bitrate: str = Field(default="128k", description="AAC bitrate for the remux")
    output_format: str = Field(default="mp4", description="Container of the default output")
    work_dir: Path = Field(
        default=Path("temp_ascii"), description="Working directory for derived artifacts"
    )
    cache_file: Path = Field(
        default=Path(".asciivid_cache"),
        description="Staleness cache record; kept outside the working directory, may be shared",
    )
    font_name: str = Field(default="Courier", description="Font used to rasterize ASCII frames")
    font_size: int = Field(default=10, gt=0, description="Font size in points")
    annotate_offset: tuple[int, int] = Field(
        default=(5, 15), description="Glyph offset (x, y) in pixels"
    )
    ascii_batch_size: int = Field(default=50, gt=0, description="Frames per conversion batch")
    render_batch_size: int = Field(default=100, gt=0, description="Frames per render batch")
    aspect_ratio_correction: float = Field(
        default=0.5, gt=0, description="Character cell height/width compensation"
    )
    frame_digits: int = Field(
        default=6, ge=1, description="Zero padding of frame sequence numbers in file names"
    )
    audio_filter: str = Field(
        default=DEFAULT_AUDIO_FILTER, description="ffmpeg filter used to compress dynamics"
    )
    workers: int = Field(default=1, ge=1, description="Parallel stage calls within a batch")
    tool_timeout: float | None = Field(
        default=None, gt=0, description="Timeout in seconds for external tools (None: wait)"
    )
    show_progress: bool = Field(default=True, description="Render tqdm progress bars")

    @property
    def frames_dir(self) -> Path:
        """Directory holding per-frame artifacts."""
        return self.work_dir / "frames"

    @property
    def default_output_path(self) -> Path:
        """Output path used when none is given."""
        return Path(f"output_ascii.{self.output_format}")
