"""Render stage: ASCII text frames to images, then to a video stream."""

from __future__ import annotations

import functools
import logging
import time
from pathlib import Path

from asciivid.batch import ProgressCallback, StageOutcome, run_batches
from asciivid.config import PipelineConfig
from asciivid.models.schema import VideoMetadata
from asciivid.store.manifest import FrameEntry, FrameManifest
from asciivid.tools.base import ImageTool, MediaTool, ToolError

logger = logging.getLogger(__name__)

VIDEO_TEMP_NAME = "video_temp.mp4"


class RenderError(Exception):
    """No ASCII frames to render, or the video could not be encoded."""

    pass


def _format_sequences(sequences: list[int], limit: int = 10) -> str:
    shown = ", ".join(str(seq) for seq in sequences[:limit])
    if len(sequences) > limit:
        shown += f", ... ({len(sequences) - limit} more)"
    return shown


def rasterize_frame(
    entry: FrameEntry,
    image_tool: ImageTool,
    metadata: VideoMetadata,
    config: PipelineConfig,
) -> StageOutcome:
    """Draw one ASCII text frame at the source video's pixel size.

    A rasterizer that leaves no image behind counts as a failure; the frame
    is simply retried on the next run.
    """
    if entry.has_raster:
        return StageOutcome.SKIPPED

    image_tool.rasterize(
        entry.text_path,
        entry.raster_path,
        width=metadata.width,
        height=metadata.height,
        font_name=config.font_name,
        font_size=config.font_size,
        offset=config.annotate_offset,
    )
    return StageOutcome.DONE if entry.has_raster else StageOutcome.FAILED


def render_video(
    manifest: FrameManifest,
    image_tool: ImageTool,
    media: MediaTool,
    metadata: VideoMetadata,
    config: PipelineConfig,
    work_dir: Path,
    progress: ProgressCallback | None = None,
) -> Path:
    """Rasterize every ASCII frame and encode the images into a video.

    Args:
        manifest: Scanned frame manifest.
        image_tool: Glyph rasterizer.
        media: Video encoder.
        metadata: Video metadata (pixel size of the rasterized frames).
        config: Pipeline configuration (font, offset, batch size, fps).
        work_dir: Directory receiving the intermediate video.
        progress: Batch progress callback.

    Returns:
        Path to the encoded, silent video.

    Raises:
        RenderError: If there are no ASCII frames, no frame could be
            rasterized, or encoding fails.
    """
    logger.info("Creating ASCII video...")

    text_entries = manifest.with_text()
    if not text_entries:
        raise RenderError("No ASCII frames found")

    logger.info(f"Rendering {len(text_entries)} ASCII frames to images...")
    stage = functools.partial(
        rasterize_frame, image_tool=image_tool, metadata=metadata, config=config
    )
    run_batches(
        text_entries,
        config.render_batch_size,
        stage,
        on_batch_complete=progress,
        label="Rendering ASCII frames",
        workers=config.workers,
    )

    images = [entry.raster_path for entry in text_entries if entry.has_raster]
    if not images:
        raise RenderError("No ASCII frames could be rasterized")

    missing = [entry.sequence for entry in text_entries if not entry.has_raster]
    if missing:
        logger.warning(
            f"{len(missing)} frames could not be rasterized and are dropped "
            f"(sequence {_format_sequences(missing)}); the video will run "
            f"short and drift against the audio"
        )

    logger.info("Encoding video from images...")
    start_time = time.perf_counter()
    output = work_dir / VIDEO_TEMP_NAME
    try:
        media.encode_video(images, config.output_fps, output)
    except ToolError as e:
        raise RenderError(f"Video encoding failed: {e}") from e

    elapsed = time.perf_counter() - start_time
    logger.info(f"Video created in {elapsed:.2f}s")
    return output
