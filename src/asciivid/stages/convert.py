"""Conversion stage: extracted frames to ASCII text.

This stage handles:
- Brightness to character mapping
- Decoding raw grayscale pixels into a frame buffer
- Rendering a frame buffer as an ASCII text grid
- Writing one text artifact per frame, skipping frames already converted
"""

from __future__ import annotations

import functools
import logging
import math
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from asciivid.batch import BatchResult, ProgressCallback, StageOutcome, run_batches
from asciivid.config import PipelineConfig
from asciivid.models.schema import VideoMetadata
from asciivid.store.manifest import FrameEntry, FrameManifest
from asciivid.tools.base import ImageTool

logger = logging.getLogger(__name__)

MAX_SAMPLE_VALUE = 255.0

RawSamples = Union[bytes, bytearray, memoryview, Sequence[float], None]


class ConversionPartialFailure(Exception):
    """A frame decoded to fewer samples than its grid needs.

    Recovered locally: the missing samples render as the darkest character.
    """

    def __init__(self, message: str, samples: bytes = b"") -> None:
        super().__init__(message)
        self.samples = samples


def pixel_to_ascii(brightness: float, charset: str) -> str:
    """Map a normalized brightness to a character of ``charset``.

    Out-of-range input is clamped to [0, 1] and NaN reads as 0, so the result
    is always a character of the ramp.
    """
    if math.isnan(brightness):
        brightness = 0.0
    brightness = min(max(brightness, 0.0), 1.0)

    last = len(charset) - 1
    index = math.floor(brightness * last)
    index = min(max(index, 0), last)
    return charset[index]


def decode_frame_buffer(raw_samples: RawSamples, width: int, height: int) -> NDArray[np.float64]:
    """Decode 8-bit grayscale samples into a ``height x width`` brightness grid.

    Samples are divided by 255. A short stream is padded with 0.0 (darkest);
    samples past ``width * height`` are ignored. Missing or malformed input
    yields an all-dark buffer.
    """
    size = width * height
    buffer = np.zeros(size, dtype=np.float64)

    if raw_samples is None:
        return buffer.reshape(height, width)

    if isinstance(raw_samples, (bytes, bytearray, memoryview)):
        samples = np.frombuffer(raw_samples, dtype=np.uint8)[:size].astype(np.float64)
    else:
        try:
            samples = np.asarray(raw_samples, dtype=np.float64).ravel()[:size]
        except (TypeError, ValueError):
            logger.warning("Malformed sample stream, decoding as a dark frame")
            return buffer.reshape(height, width)

    levels = np.nan_to_num(samples / MAX_SAMPLE_VALUE, nan=0.0)
    buffer[: len(levels)] = np.clip(levels, 0.0, 1.0)
    return buffer.reshape(height, width)


def render_ascii_frame(buffer: NDArray[np.float64], charset: str) -> str:
    """Render a brightness grid as text, one line per row.

    Vectorized equivalent of calling ``pixel_to_ascii`` on every cell.
    """
    chars = np.array(list(charset))
    last = len(charset) - 1

    levels = np.clip(np.nan_to_num(np.asarray(buffer, dtype=np.float64), nan=0.0), 0.0, 1.0)
    indices = np.clip(np.floor(levels * last).astype(np.intp), 0, last)

    grid = chars[indices]
    return "\n".join("".join(row) for row in grid)


def _read_samples(entry: FrameEntry, image_tool: ImageTool, metadata: VideoMetadata) -> bytes:
    expected = metadata.output_width * metadata.output_height
    raw = image_tool.decode_gray(entry.frame_path, metadata.output_width, metadata.output_height)
    if len(raw) < expected:
        raise ConversionPartialFailure(
            f"Decoded {len(raw)} of {expected} samples from {entry.frame_path.name}",
            samples=raw,
        )
    return raw


def convert_frame(
    entry: FrameEntry,
    image_tool: ImageTool,
    metadata: VideoMetadata,
    charset: str,
) -> StageOutcome:
    """Write the ASCII text artifact of one frame.

    Frames that already have a text artifact are left untouched. The text is
    written under a temporary name and renamed, so a half-written file never
    counts as done.
    """
    if entry.has_text:
        return StageOutcome.SKIPPED

    try:
        raw = _read_samples(entry, image_tool, metadata)
    except ConversionPartialFailure as e:
        logger.warning(f"{e}; missing samples render dark")
        raw = e.samples

    buffer = decode_frame_buffer(raw, metadata.output_width, metadata.output_height)
    text = render_ascii_frame(buffer, charset)

    tmp_path = entry.text_path.with_name(entry.text_path.name + ".tmp")
    tmp_path.write_text(text)
    tmp_path.replace(entry.text_path)
    return StageOutcome.DONE


def convert_frames(
    manifest: FrameManifest,
    image_tool: ImageTool,
    metadata: VideoMetadata,
    config: PipelineConfig,
    progress: ProgressCallback | None = None,
) -> BatchResult:
    """Convert every indexed frame to ASCII text.

    Args:
        manifest: Scanned frame manifest.
        image_tool: Grayscale decoder.
        metadata: Video metadata with the ASCII grid size.
        config: Pipeline configuration (charset, batch size, workers).
        progress: Batch progress callback.

    Returns:
        BatchResult of the conversion.
    """
    entries = manifest.entries
    total = len(entries)

    existing = len(manifest.with_text())
    if total and existing == total:
        logger.info(f"All {existing} ASCII frames exist")
        return BatchResult(total=total, skipped=total)

    logger.info("Converting frames to ASCII...")
    stage = functools.partial(
        convert_frame,
        image_tool=image_tool,
        metadata=metadata,
        charset=config.ascii_chars,
    )
    result = run_batches(
        entries,
        config.ascii_batch_size,
        stage,
        on_batch_complete=progress,
        label="Converting to ASCII",
        workers=config.workers,
    )

    logger.info(f"Converted {result.succeeded} new frames")
    if result.failed:
        logger.warning(f"{result.failed} frames could not be converted")
    return result
