"""Audio stage: extract the soundtrack and compress its dynamics.

Both steps are optional for the run. A failed extraction yields a silent
output; a failed compression falls back to the unprocessed track.
"""

from __future__ import annotations

import logging
from pathlib import Path

from asciivid.tools.base import MediaTool, ToolError

logger = logging.getLogger(__name__)

RAW_AUDIO_NAME = "audio.wav"
PROCESSED_AUDIO_NAME = "audio_processed.wav"


class AudioError(Exception):
    """Audio extraction or processing failed."""

    pass


def extract_audio(media: MediaTool, source: Path, work_dir: Path) -> Path:
    """Extract the source's audio track as WAV into ``work_dir``.

    Raises:
        AudioError: If the tool fails or writes nothing.
    """
    output = work_dir / RAW_AUDIO_NAME
    try:
        media.extract_audio(source, output)
    except ToolError as e:
        raise AudioError(f"Audio extraction failed: {e}") from e

    if not output.exists():
        raise AudioError(f"Audio extraction produced no output: {output}")
    return output


def compress_audio(media: MediaTool, audio: Path, audio_filter: str) -> Path:
    """Run the dynamics-compression filter over an extracted track.

    Raises:
        AudioError: If the tool fails or writes nothing.
    """
    output = audio.with_name(PROCESSED_AUDIO_NAME)
    try:
        media.compress_audio(audio, output, audio_filter)
    except ToolError as e:
        raise AudioError(f"Audio compression failed: {e}") from e

    if not output.exists():
        raise AudioError(f"Audio compression produced no output: {output}")
    return output


def process_audio(
    media: MediaTool, source: Path, work_dir: Path, audio_filter: str
) -> Path | None:
    """Prepare the soundtrack for the final remux.

    Args:
        media: Media tool.
        source: Input video.
        work_dir: Working directory for intermediate audio.
        audio_filter: ffmpeg filter applied to the extracted track.

    Returns:
        Path to the processed (or, on compression failure, raw) audio, or None
        when no audio could be extracted.
    """
    logger.info("Processing audio...")

    try:
        raw_audio = extract_audio(media, source, work_dir)
    except AudioError as e:
        logger.warning(f"{e}; output will have no audio")
        return None

    try:
        processed = compress_audio(media, raw_audio, audio_filter)
    except AudioError as e:
        logger.warning(f"{e}; using raw audio")
        return raw_audio

    logger.info("Audio processed")
    return processed
