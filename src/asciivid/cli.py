"""Command-line interface for asciivid."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from asciivid import Pipeline, PipelineError, __version__
from asciivid.utils.logging import get_logger

USAGE = "Usage: asciivid <input_video> [output_video]"

app = typer.Typer(
    name="asciivid",
    help="Convert a video into an ASCII-art video.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"asciivid {__version__}")
        raise typer.Exit()


@app.command()
def main(
    input_video: Annotated[
        Optional[Path],
        typer.Argument(help="Path to the video to convert", show_default=False),
    ] = None,
    output_video: Annotated[
        Optional[Path],
        typer.Argument(
            help="Output path (default: output_ascii.mp4)",
            show_default=False,
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Convert INPUT_VIDEO into an ASCII-art video.

    Example:
        asciivid clip.mp4 clip_ascii.mp4
    """
    # A missing input is not an error: print usage and do nothing
    if input_video is None:
        typer.echo(USAGE)
        return

    log_level = logging.WARNING if quiet else logging.INFO
    get_logger(level=log_level, stream=sys.stdout)

    try:
        pipeline = Pipeline(show_progress=not quiet)
        report = pipeline.convert(input_video, output_video)
    except (PipelineError, ValidationError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except Exception as e:
        typer.secho(f"Unexpected error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if not report.success:
        raise typer.Exit(1)

    if not quiet:
        typer.echo(f"Output written to: {report.output_path}")


if __name__ == "__main__":
    app()
