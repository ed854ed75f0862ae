"""Extraction stage: source video to one image per frame.

Frames left by an earlier, interrupted run are reused only when the
staleness cache vouches for them. Otherwise every artifact in the frames
directory is deleted first, so stale and fresh frames never mix.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from asciivid.models.schema import VideoMetadata
from asciivid.store.cache import StalenessCache
from asciivid.store.manifest import FrameManifest
from asciivid.tools.base import MediaTool, ToolError

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Frame extraction failed or produced no frames."""

    pass


@dataclass
class ExtractionResult:
    """Frames available after the extraction stage."""

    frame_count: int
    reused: bool


def extract_frames(
    media: MediaTool,
    source: Path,
    metadata: VideoMetadata,
    fps: int,
    manifest: FrameManifest,
    cache: StalenessCache,
) -> ExtractionResult:
    """Make sure the frames directory holds the frames of ``source``.

    Args:
        media: Media tool used to extract.
        source: Input video.
        metadata: Metadata with the ASCII grid size frames are scaled to.
        fps: Target frame rate.
        manifest: Manifest of the frames directory; rescanned on return.
        cache: Staleness cache, saved after a successful extraction.

    Returns:
        ExtractionResult with the frame count and whether frames were reused.

    Raises:
        ExtractionError: If the extractor fails or writes no frames.
    """
    logger.info("Checking frames...")

    existing = len(manifest.scan())
    if existing > 0 and cache.is_valid(source, manifest.frames_dir):
        logger.info(f"Using {existing} cached frames")
        return ExtractionResult(frame_count=existing, reused=True)

    if existing > 0:
        logger.info("Input changed, regenerating frames...")
    else:
        logger.info("Extracting frames...")
    # Frames written from here on are unvouched until the new record is saved
    cache.clear()
    manifest.reset()

    start_time = time.perf_counter()
    try:
        media.extract_frames(
            source,
            fps=fps,
            width=metadata.output_width,
            height=metadata.output_height,
            pattern=manifest.extraction_pattern,
        )
    except ToolError as e:
        raise ExtractionError(f"Frame extraction failed: {e}") from e

    count = len(manifest.scan())
    if count == 0:
        raise ExtractionError("No frames were extracted")

    try:
        cache.save(source, manifest.frames_dir)
    except FileNotFoundError as e:
        raise ExtractionError(f"Input disappeared during extraction: {e}") from e

    elapsed = time.perf_counter() - start_time
    logger.info(f"Frames extracted: {count} in {elapsed:.2f}s")
    return ExtractionResult(frame_count=count, reused=False)
