"""Processing stages for the asciivid pipeline.

Each stage handles a specific part of the conversion:
- ingest: Source validation and metadata probing
- extract: Frame extraction with staleness-cache reuse
- convert: Frames to ASCII text
- audio: Soundtrack extraction and dynamics compression
- render: ASCII text to images and video
- combine: Final remux
"""

__all__ = [
    "ingest",
    "extract",
    "convert",
    "audio",
    "render",
    "combine",
]
