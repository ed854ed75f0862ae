"""Combine stage: mux the ASCII video with the processed soundtrack."""

from __future__ import annotations

import logging
from pathlib import Path

from asciivid.tools.base import MediaTool, ToolError

logger = logging.getLogger(__name__)


class CombineError(Exception):
    """The final output could not be written."""

    pass


def combine_output(
    media: MediaTool,
    video: Path,
    audio: Path | None,
    bitrate: str,
    output: Path,
) -> None:
    """Write the final output file.

    With audio, the video stream is copied and the audio re-encoded at
    ``bitrate``, trimmed to the shorter stream. Without audio the video is
    copied unchanged. A failed remux leaves whatever the tool wrote at
    ``output`` in place.

    Raises:
        CombineError: If the tool fails.
    """
    if audio is None:
        try:
            media.combine(video, None, bitrate, output)
        except ToolError as e:
            raise CombineError(f"Failed to copy video: {e}") from e
        logger.info(f"Output (no audio): {output}")
        return

    logger.info("Combining video and audio...")
    try:
        media.combine(video, audio, bitrate, output)
    except ToolError as e:
        raise CombineError(f"Failed to combine video and audio: {e}") from e
    logger.info(f"Output: {output}")
