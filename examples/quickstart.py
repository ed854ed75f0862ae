#!/usr/bin/env python3
"""asciivid Quickstart Example.

Converts a video with a narrower grid and a denser character ramp, then
prints the run report.

Usage:
    python examples/quickstart.py path/to/video.mp4 [output.mp4]

Requirements:
    - ffmpeg and ffprobe on PATH
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    """Run the quickstart example."""
    import asciivid

    if len(sys.argv) < 2:
        print("Usage: python quickstart.py <video_file> [output_file]")
        print("\nExample:")
        print("  python quickstart.py clip.mp4")
        print("  python quickstart.py clip.mp4 clip_ascii.mp4")
        sys.exit(1)

    video_path = Path(sys.argv[1])
    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else None

    print(f"asciivid v{asciivid.__version__}")
    print(f"Converting: {video_path}")
    print("-" * 50)

    pipeline = asciivid.Pipeline(
        output_width=80,
        ascii_chars=" .'`^\",:;Il!i><~+_-?][}{1)(|/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
    )
    report = pipeline.convert(video_path, output_path)

    print(f"\nStates: {' -> '.join(state.value for state in report.states)}")
    print(f"Frames: {report.frame_count}")
    print(f"Audio: {'yes' if report.has_audio else 'no'}")
    print(f"Elapsed: {report.elapsed:.1f}s")

    if not report.success:
        print(f"Error: {report.error}")
        sys.exit(1)

    print(f"Output: {report.output_path}")


if __name__ == "__main__":
    main()
