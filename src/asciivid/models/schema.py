"""Pydantic models describing an asciivid conversion."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class VideoMetadata(BaseModel):
    """Technical metadata about the source video and the ASCII grid derived from it."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0, description="Source width in pixels")
    height: int = Field(..., gt=0, description="Source height in pixels")
    source_fps: int = Field(..., gt=0, description="Source frame rate, floored")
    output_width: int = Field(..., gt=0, description="ASCII columns per frame")
    output_height: int = Field(..., gt=0, description="ASCII rows per frame")

    @classmethod
    def from_dimensions(
        cls,
        width: int,
        height: int,
        source_fps: int,
        output_width: int,
        aspect_ratio_correction: float,
    ) -> VideoMetadata:
        """Build metadata, deriving the ASCII row count from the source aspect ratio."""
        output_height = math.floor(output_width * height / width * aspect_ratio_correction)
        return cls(
            width=width,
            height=height,
            source_fps=source_fps,
            output_width=output_width,
            output_height=max(1, output_height),
        )


class PipelineState(str, Enum):
    """States of a conversion run."""

    INIT = "init"
    PROBE_FAILED = "probe_failed"
    PROBED = "probed"
    EXTRACT_FAILED = "extract_failed"
    EXTRACTED = "extracted"
    CONVERTED = "converted"
    AUDIO_UNAVAILABLE = "audio_unavailable"
    AUDIO_READY = "audio_ready"
    RENDER_FAILED = "render_failed"
    RENDERED = "rendered"
    COMBINED = "combined"
    COMBINE_FAILED = "combine_failed"
    CLEANED_UP = "cleaned_up"


@dataclass
class PipelineRun:
    """Transient state of one conversion.

    The run owns every artifact under ``work_dir``; the directory is removed
    when the run ends.
    """

    input_path: Path
    output_path: Path
    work_dir: Path
    metadata: VideoMetadata | None = None


class RunReport(BaseModel):
    """Outcome of ``Pipeline.convert()``."""

    input_path: str = Field(..., description="Source video")
    output_path: str = Field(..., description="Requested output file")
    success: bool = Field(default=False, description="Whether the output was produced")
    states: list[PipelineState] = Field(
        default_factory=list, description="States visited, in order"
    )
    frame_count: int = Field(default=0, ge=0, description="Frames extracted or reused")
    has_audio: bool = Field(default=False, description="Whether audio was muxed")
    error: str | None = Field(default=None, description="Error message of a failed run")
    elapsed: float = Field(default=0.0, ge=0, description="Wall time in seconds")

    @property
    def final_state(self) -> PipelineState:
        """Last state visited."""
        return self.states[-1] if self.states else PipelineState.INIT
