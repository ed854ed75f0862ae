"""Main pipeline orchestration for asciivid."""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import Any

from asciivid.batch import ProgressCallback, TqdmProgress
from asciivid.config import PipelineConfig
from asciivid.models.schema import PipelineRun, PipelineState, RunReport
from asciivid.stages.audio import process_audio
from asciivid.stages.combine import CombineError, combine_output
from asciivid.stages.convert import convert_frames
from asciivid.stages.extract import ExtractionError, extract_frames
from asciivid.stages.ingest import ProbeError, probe_video
from asciivid.stages.render import RenderError, render_video
from asciivid.store.cache import StalenessCache
from asciivid.store.manifest import FrameManifest
from asciivid.tools.base import ImageTool, MediaTool
from asciivid.tools.ffmpeg import FFmpegTool
from asciivid.tools.imaging import PillowImageTool

logger = logging.getLogger(__name__)

# Terminal state recorded for each fatal stage error
FAILURE_STATES: dict[type[Exception], PipelineState] = {
    ProbeError: PipelineState.PROBE_FAILED,
    ExtractionError: PipelineState.EXTRACT_FAILED,
    RenderError: PipelineState.RENDER_FAILED,
    CombineError: PipelineState.COMBINE_FAILED,
}


def _failure_state(error: Exception) -> PipelineState:
    for error_type, state in FAILURE_STATES.items():
        if isinstance(error, error_type):
            return state
    raise TypeError(f"Not a stage error: {error!r}")


class PipelineError(Exception):
    """Invalid pipeline usage."""

    pass


class Pipeline:
    """Video to ASCII-art conversion pipeline.

    Stages: probe, extract, convert, audio, render, combine, cleanup. Every
    derived artifact lives under the configured working directory, which is
    removed when the run ends whatever its outcome. Only the staleness cache
    record, stored outside that directory, survives a run.

    One working directory serves one run at a time; running two pipelines
    against the same ``work_dir`` or ``cache_file`` concurrently is not
    supported.

    Example:
        >>> from asciivid import Pipeline
        >>> pipeline = Pipeline(output_width=80)
        >>> report = pipeline.convert("clip.mp4", "clip_ascii.mp4")
        >>> report.success
        True
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        media: MediaTool | None = None,
        image_tool: ImageTool | None = None,
        progress: ProgressCallback | None = None,
        **overrides: Any,
    ) -> None:
        """Initialize a pipeline.

        Args:
            config: Pipeline configuration. Defaults to ``PipelineConfig()``.
            media: Video/audio tool. Defaults to ``FFmpegTool``.
            image_tool: Image tool. Defaults to ``PillowImageTool``.
            progress: Batch progress callback. Defaults to tqdm bars.
            **overrides: Config fields overriding those of ``config``.

        Raises:
            pydantic.ValidationError: If an override is invalid.
        """
        if config is None:
            config = PipelineConfig(**overrides)
        elif overrides:
            config = PipelineConfig(**{**config.model_dump(), **overrides})

        self.config = config
        self.media = media if media is not None else FFmpegTool(timeout=config.tool_timeout)
        self.image_tool = image_tool if image_tool is not None else PillowImageTool()
        self.cache = StalenessCache(config.cache_file)
        self._progress = progress

        logger.debug(f"asciivid pipeline initialized (work_dir={config.work_dir})")

    def convert(self, source: str | Path, output: str | Path | None = None) -> RunReport:
        """Convert a video into its ASCII-art rendition.

        Args:
            source: Path to the input video.
            output: Output path. Defaults to ``output_ascii.<output_format>``.

        Returns:
            RunReport describing the states visited and the outcome. Stage
            failures are reported here, not raised.

        Raises:
            PipelineError: If ``source`` is empty.
        """
        if not str(source):
            raise PipelineError("An input video path is required")

        run = PipelineRun(
            input_path=Path(source),
            output_path=Path(output) if output else self.config.default_output_path,
            work_dir=self.config.work_dir,
        )
        report = RunReport(
            input_path=str(run.input_path),
            output_path=str(run.output_path),
            states=[PipelineState.INIT],
        )
        start_time = time.perf_counter()

        logger.info("- Video to ASCII Converter -")
        logger.info(f"Input: {run.input_path}")

        try:
            self._run_stages(run, report)
        except (ProbeError, ExtractionError, RenderError, CombineError) as e:
            report.states.append(_failure_state(e))
            report.error = str(e)
            logger.error(f"Error: {e}")
            if isinstance(e, CombineError) and run.output_path.exists():
                logger.warning(f"Partial output left at {run.output_path}")
        finally:
            self.cleanup(run)
            report.states.append(PipelineState.CLEANED_UP)
            report.elapsed = time.perf_counter() - start_time

        if report.success:
            logger.info(f"Completed in {report.elapsed:.1f}s")
        return report

    def _run_stages(self, run: PipelineRun, report: RunReport) -> None:
        config = self.config
        progress = self._progress or TqdmProgress(disable=not config.show_progress)

        # Stage 1: Probe
        run.metadata = probe_video(self.media, run.input_path, config)
        report.states.append(PipelineState.PROBED)

        # Stage 2: Extract (or reuse) frames
        run.work_dir.mkdir(parents=True, exist_ok=True)
        manifest = FrameManifest(config.frames_dir, digits=config.frame_digits)
        extraction = extract_frames(
            self.media,
            run.input_path,
            run.metadata,
            fps=config.output_fps,
            manifest=manifest,
            cache=self.cache,
        )
        report.frame_count = extraction.frame_count
        report.states.append(PipelineState.EXTRACTED)

        # Stage 3: Frames to ASCII text
        convert_frames(manifest, self.image_tool, run.metadata, config, progress)
        report.states.append(PipelineState.CONVERTED)

        # Stage 4: Audio (non-fatal)
        audio = process_audio(self.media, run.input_path, run.work_dir, config.audio_filter)
        report.states.append(
            PipelineState.AUDIO_READY if audio is not None else PipelineState.AUDIO_UNAVAILABLE
        )

        # Stage 5: Rasterize and encode
        video = render_video(
            manifest,
            self.image_tool,
            self.media,
            run.metadata,
            config,
            run.work_dir,
            progress,
        )
        report.states.append(PipelineState.RENDERED)

        # Stage 6: Combine
        run.output_path.absolute().parent.mkdir(parents=True, exist_ok=True)
        combine_output(self.media, video, audio, config.audio_bitrate, run.output_path)
        report.has_audio = audio is not None
        report.success = True
        report.states.append(PipelineState.COMBINED)

    def cleanup(self, run: PipelineRun) -> None:
        """Remove the run's working directory and every artifact in it."""
        if not run.work_dir.exists():
            return
        try:
            shutil.rmtree(run.work_dir)
        except OSError as e:
            logger.warning(f"Failed to remove {run.work_dir}: {e}")
