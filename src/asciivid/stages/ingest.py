"""Ingestion stage: source validation and metadata extraction.

This stage handles:
- Source file validation
- Probing the first video stream
- Deriving the ASCII grid size from the source aspect ratio
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from asciivid.config import PipelineConfig
from asciivid.models.schema import VideoMetadata
from asciivid.tools.base import MediaTool, ProbeResult, ToolError

logger = logging.getLogger(__name__)


class ProbeError(Exception):
    """Video metadata is missing or could not be read."""

    pass


def validate_file(source: Path) -> None:
    """Validate that the source exists and is a regular file.

    Raises:
        ProbeError: If the file does not exist.
    """
    if not source.is_file():
        raise ProbeError(f"File not found - {source}")


def resolve_fps(probe: ProbeResult, default_fps: int) -> int:
    """Floor the probed frame rate, falling back to ``default_fps``.

    A zero denominator, a non-positive rate, or a rate that floors to zero all
    use the default.
    """
    if probe.frame_rate_den == 0:
        return default_fps

    fps = probe.frame_rate_num // probe.frame_rate_den
    if fps <= 0:
        return default_fps
    return fps


def _valid_dimension(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def probe_video(media: MediaTool, source: Path, config: PipelineConfig) -> VideoMetadata:
    """Probe a video and derive the metadata of its ASCII rendition.

    Args:
        media: Media tool used to probe.
        source: Path to the input video.
        config: Pipeline configuration (output width, fps, aspect correction).

    Returns:
        VideoMetadata for the run.

    Raises:
        ProbeError: If the file is missing, the probe fails, or the probe
            output lacks usable dimensions.
    """
    validate_file(source)
    start_time = time.perf_counter()

    try:
        probe = media.probe(source)
    except ToolError as e:
        raise ProbeError(f"Failed to read video info: {e}") from e

    if not (_valid_dimension(probe.width) and _valid_dimension(probe.height)):
        raise ProbeError(f"Failed to read video dimensions of {source.name}")

    metadata = VideoMetadata.from_dimensions(
        width=probe.width,
        height=probe.height,
        source_fps=resolve_fps(probe, config.output_fps),
        output_width=config.output_width,
        aspect_ratio_correction=config.aspect_ratio_correction,
    )

    elapsed = time.perf_counter() - start_time
    logger.debug(f"Probed {source.name} in {elapsed:.2f}s")
    logger.info(f"Video: {metadata.width}x{metadata.height} @ {metadata.source_fps} fps")
    logger.info(f"ASCII output: {metadata.output_width}x{metadata.output_height} characters")

    return metadata
