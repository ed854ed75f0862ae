"""External tools driven by the pipeline.

- base: MediaTool/ImageTool interfaces and ToolError
- ffmpeg: ffmpeg/ffprobe subprocess implementation
- imaging: Pillow implementation
"""

from asciivid.tools.base import ImageTool, MediaTool, ProbeResult, ToolError
from asciivid.tools.ffmpeg import FFmpegTool
from asciivid.tools.imaging import PillowImageTool

__all__ = [
    "FFmpegTool",
    "ImageTool",
    "MediaTool",
    "PillowImageTool",
    "ProbeResult",
    "ToolError",
]
