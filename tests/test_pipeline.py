"""Tests for the asciivid Pipeline."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from PIL import Image
from pydantic import ValidationError

from asciivid import Pipeline, PipelineError, PipelineState
from asciivid.config import PipelineConfig
from asciivid.tools.imaging import PillowImageTool

S = PipelineState


def _prepopulate(config: PipelineConfig, count: int, value: int = 128) -> None:
    """Leave extracted frames behind as an interrupted run would."""
    config.frames_dir.mkdir(parents=True, exist_ok=True)
    for i in range(1, count + 1):
        Image.new("L", (120, 40), value).save(config.frames_dir / f"frame_{i:06d}.png")


class TestPipelineInit:
    """Tests for Pipeline initialization."""

    def test_default_config(self) -> None:
        """Pipeline() uses the default configuration and real tools."""
        pipeline = Pipeline()

        assert pipeline.config == PipelineConfig()
        assert type(pipeline.media).__name__ == "FFmpegTool"
        assert type(pipeline.image_tool).__name__ == "PillowImageTool"

    def test_overrides_merge_into_config(self, config: PipelineConfig) -> None:
        """Keyword overrides replace single fields of the given config."""
        pipeline = Pipeline(config, output_width=60)

        assert pipeline.config.output_width == 60
        assert pipeline.config.ascii_chars == config.ascii_chars
        assert pipeline.config.work_dir == config.work_dir

    def test_invalid_override(self) -> None:
        """Invalid overrides fail at construction."""
        with pytest.raises(ValidationError):
            Pipeline(output_width=0)

    def test_tool_timeout_reaches_ffmpeg(self) -> None:
        """The configured timeout is handed to the default media tool."""
        pipeline = Pipeline(tool_timeout=30.0)

        assert pipeline.media.timeout == 30.0

    def test_empty_source(self, config: PipelineConfig, media, image_tool) -> None:
        """An empty input path is invalid usage."""
        pipeline = Pipeline(config, media=media, image_tool=image_tool)

        with pytest.raises(PipelineError, match="input video"):
            pipeline.convert("")


class TestPipelineConvert:
    """Tests for Pipeline.convert() with fake tools."""

    def test_success(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """A full run visits every state and writes the output."""
        output = temp_dir / "out" / "result.mp4"
        pipeline = Pipeline(config, media=media, image_tool=image_tool)

        report = pipeline.convert(sample_video_path, output)

        assert report.success is True
        assert report.error is None
        assert report.states == [
            S.INIT, S.PROBED, S.EXTRACTED, S.CONVERTED,
            S.AUDIO_READY, S.RENDERED, S.COMBINED, S.CLEANED_UP,
        ]
        assert report.final_state == S.CLEANED_UP
        assert report.frame_count == 10
        assert report.has_audio is True
        assert report.output_path == str(output)
        assert output.read_bytes() == b"final video"
        assert not config.work_dir.exists()

    def test_tools_called_with_grid_and_order(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """Frames are extracted at the grid size and encoded in sequence order."""
        Pipeline(config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        [(source, fps, width, height, _)] = media.calls_to("extract_frames")
        assert (source, fps, width, height) == (sample_video_path, 30, 120, 40)

        [(images, encode_fps, video)] = media.calls_to("encode_video")
        assert [p.name for p in images] == [f"frame_{i:06d}_ascii.png" for i in range(1, 11)]
        assert encode_fps == 30
        assert video == config.work_dir / "video_temp.mp4"

        [(_, audio, bitrate, _)] = media.calls_to("combine")
        assert audio == config.work_dir / "audio_processed.wav"
        assert bitrate == "128k"

    def test_every_frame_decoded_and_rasterized(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """Every frame is decoded and rasterized once."""
        Pipeline(config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        assert len(image_tool.decoded) == 10
        assert len(image_tool.rasterized) == 10

    def test_progress_reported_per_batch(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """One callback per batch in each batched stage."""
        calls: list[tuple[int, int, str]] = []
        pipeline = Pipeline(
            config, media=media, image_tool=image_tool, progress=lambda *args: calls.append(args)
        )

        pipeline.convert(sample_video_path, temp_dir / "out.mp4")

        assert [c for c in calls if c[2] == "Converting to ASCII"] == [
            (4, 10, "Converting to ASCII"),
            (8, 10, "Converting to ASCII"),
            (10, 10, "Converting to ASCII"),
        ]
        assert [c[0] for c in calls if c[2] == "Rendering ASCII frames"] == [3, 6, 9, 10]

    def test_default_output_path(self, config, media, image_tool, sample_video_path, temp_dir, monkeypatch) -> None:
        """Without an output path the result goes to output_ascii.<format>."""
        monkeypatch.chdir(temp_dir)

        report = Pipeline(config, media=media, image_tool=image_tool).convert(sample_video_path)

        assert report.output_path == "output_ascii.mp4"
        assert (temp_dir / "output_ascii.mp4").exists()

    def test_undecodable_frames_render_dark(
        self, config, media, make_image_tool, sample_video_path, temp_dir
    ) -> None:
        """Decode failures do not abort the run."""
        image_tool = make_image_tool(fail_decode=True)

        report = Pipeline(config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        assert report.success is True
        assert len(image_tool.rasterized) == 10

    def test_cache_file_survives_cleanup(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """The staleness record is kept outside the working directory."""
        pipeline = Pipeline(config, media=media, image_tool=image_tool)

        pipeline.convert(sample_video_path, temp_dir / "out.mp4")

        assert config.cache_file.exists()
        assert pipeline.cache.is_valid(sample_video_path, config.frames_dir) is True


class TestPipelineAudio:
    """Tests for the non-fatal audio stage."""

    def test_no_audio_track(self, config, make_media, image_tool, sample_video_path, temp_dir) -> None:
        """Missing audio yields a silent output, not a failure."""
        media = make_media(fail={"audio"})

        report = Pipeline(config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        assert report.success is True
        assert report.has_audio is False
        assert S.AUDIO_UNAVAILABLE in report.states
        assert S.AUDIO_READY not in report.states
        assert media.calls_to("compress_audio") == []
        [(_, audio, _, _)] = media.calls_to("combine")
        assert audio is None

    def test_compression_failure_uses_raw_audio(
        self, config, make_media, image_tool, sample_video_path, temp_dir
    ) -> None:
        """A failed compression falls back to the unprocessed track."""
        media = make_media(fail={"compress"})

        report = Pipeline(config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        assert report.success is True
        assert report.has_audio is True
        assert S.AUDIO_READY in report.states
        [(_, audio, _, _)] = media.calls_to("combine")
        assert audio == config.work_dir / "audio.wav"


class TestPipelineFailures:
    """Fatal stage failures end the run and still clean up."""

    def _convert(self, config, media, image_tool, source, temp_dir):
        return Pipeline(config, media=media, image_tool=image_tool).convert(
            source, temp_dir / "out.mp4"
        )

    def test_missing_input(self, config, media, image_tool, temp_dir) -> None:
        """A missing file fails probing without invoking any tool."""
        report = self._convert(config, media, image_tool, temp_dir / "missing.mp4", temp_dir)

        assert report.success is False
        assert report.states == [S.INIT, S.PROBE_FAILED, S.CLEANED_UP]
        assert "File not found" in report.error
        assert media.calls == []

    def test_probe_failure(self, config, make_media, image_tool, sample_video_path, temp_dir) -> None:
        """A probe tool failure ends in PROBE_FAILED."""
        media = make_media(fail={"probe"})

        report = self._convert(config, media, image_tool, sample_video_path, temp_dir)

        assert report.states == [S.INIT, S.PROBE_FAILED, S.CLEANED_UP]
        assert media.calls_to("extract_frames") == []

    def test_extraction_failure(self, config, make_media, image_tool, sample_video_path, temp_dir) -> None:
        """An extractor error ends in EXTRACT_FAILED and removes the working directory."""
        media = make_media(fail={"extract"})

        report = self._convert(config, media, image_tool, sample_video_path, temp_dir)

        assert report.states == [S.INIT, S.PROBED, S.EXTRACT_FAILED, S.CLEANED_UP]
        assert "Frame extraction failed" in report.error
        assert not config.work_dir.exists()

    def test_zero_frames(self, config, make_media, image_tool, sample_video_path, temp_dir) -> None:
        """An extractor that writes nothing is a failure."""
        report = self._convert(config, make_media(frame_count=0), image_tool, sample_video_path, temp_dir)

        assert report.final_state == S.CLEANED_UP
        assert S.EXTRACT_FAILED in report.states
        assert "No frames were extracted" in report.error

    def test_nothing_rasterized(self, config, media, make_image_tool, sample_video_path, temp_dir) -> None:
        """A rasterizer that produces no images ends in RENDER_FAILED."""
        image_tool = make_image_tool(fail_rasterize=True)

        report = self._convert(config, media, image_tool, sample_video_path, temp_dir)

        assert report.states[-2:] == [S.RENDER_FAILED, S.CLEANED_UP]
        assert "could not be rasterized" in report.error
        assert media.calls_to("encode_video") == []
        assert media.calls_to("combine") == []

    def test_encode_failure(self, config, make_media, image_tool, sample_video_path, temp_dir) -> None:
        """An encoder error ends in RENDER_FAILED."""
        media = make_media(fail={"encode"})

        report = self._convert(config, media, image_tool, sample_video_path, temp_dir)

        assert report.states[-2:] == [S.RENDER_FAILED, S.CLEANED_UP]
        assert "Video encoding failed" in report.error
        assert not config.work_dir.exists()

    def test_combine_failure(self, config, make_media, image_tool, sample_video_path, temp_dir) -> None:
        """A failed remux is reported, not silently downgraded to video only."""
        media = make_media(fail={"combine"})

        report = self._convert(config, media, image_tool, sample_video_path, temp_dir)

        assert report.success is False
        assert report.states[-3:] == [S.RENDERED, S.COMBINE_FAILED, S.CLEANED_UP]
        assert "Failed to combine video and audio" in report.error
        assert len(media.calls_to("combine")) == 1
        assert not config.work_dir.exists()


class TestPipelineFrameReuse:
    """Frames left by an interrupted run."""

    def test_reuses_vouched_frames(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """Frames backed by a valid record are not extracted again."""
        _prepopulate(config, 6)
        pipeline = Pipeline(config, media=media, image_tool=image_tool)
        pipeline.cache.save(sample_video_path, config.frames_dir)

        report = pipeline.convert(sample_video_path, temp_dir / "out.mp4")

        assert report.success is True
        assert report.frame_count == 6
        assert media.calls_to("extract_frames") == []
        [(images, _, _)] = media.calls_to("encode_video")
        assert len(images) == 6

    def test_regenerates_unvouched_frames(self, config, media, image_tool, sample_video_path, temp_dir) -> None:
        """Without a valid record, leftover frames and their text are discarded."""
        _prepopulate(config, 12)
        (config.frames_dir / "frame_000012.txt").write_text("stale")

        report = Pipeline(config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        assert report.frame_count == 10
        assert len(media.calls_to("extract_frames")) == 1
        [(images, _, _)] = media.calls_to("encode_video")
        assert [p.name for p in images][-1] == "frame_000010_ascii.png"

    def test_touched_input_invalidates_frames(
        self, config, media, image_tool, sample_video_path, temp_dir
    ) -> None:
        """A record for an older version of the input is stale."""
        _prepopulate(config, 6)
        pipeline = Pipeline(config, media=media, image_tool=image_tool)
        pipeline.cache.save(sample_video_path, config.frames_dir)
        stat = os.stat(sample_video_path)
        os.utime(sample_video_path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        report = pipeline.convert(sample_video_path, temp_dir / "out.mp4")

        assert report.frame_count == 10
        assert len(media.calls_to("extract_frames")) == 1

    def test_shared_cache_file_across_work_dirs(
        self, config, make_media, image_tool, sample_video_path, temp_dir
    ) -> None:
        """A record saved from one working directory never vouches for another's frames."""
        other_config = config.model_copy(update={"work_dir": temp_dir / "work_b"})
        _prepopulate(other_config, 3, value=255)

        Pipeline(config, media=make_media(), image_tool=image_tool).convert(
            sample_video_path, temp_dir / "a.mp4"
        )
        media = make_media()
        report = Pipeline(other_config, media=media, image_tool=image_tool).convert(
            sample_video_path, temp_dir / "b.mp4"
        )

        assert report.success is True
        assert len(media.calls_to("extract_frames")) == 1
        assert report.frame_count == 10

    def test_reuses_frames_with_other_padding(
        self, config, media, image_tool, sample_video_path, temp_dir
    ) -> None:
        """Frames written with another zero padding are decoded from their real files."""
        config.frames_dir.mkdir(parents=True)
        for i in range(1, 4):
            Image.new("L", (120, 40), 128).save(config.frames_dir / f"frame_{i:05d}.png")
        pipeline = Pipeline(config, media=media, image_tool=image_tool)
        pipeline.cache.save(sample_video_path, config.frames_dir)

        report = pipeline.convert(sample_video_path, temp_dir / "out.mp4")

        assert report.frame_count == 3
        assert [p.name for p in image_tool.decoded] == [f"frame_{i:05d}.png" for i in range(1, 4)]
        [(images, _, _)] = media.calls_to("encode_video")
        assert [p.name for p in images] == [f"frame_{i:05d}_ascii.png" for i in range(1, 4)]


class TestPipelineWithPillow:
    """Pipeline with the real Pillow image tool and a fake media tool."""

    def test_real_rasterization(self, config, media, sample_video_path, temp_dir) -> None:
        """Pillow rasterizes every frame at the source pixel size."""
        seen: list[tuple[int, int]] = []

        class RecordingMedia(type(media)):
            def encode_video(self, images, fps, output):
                for image in images:
                    with Image.open(image) as img:
                        seen.append(img.size)
                super().encode_video(images, fps, output)

        report = Pipeline(config, media=RecordingMedia(), image_tool=PillowImageTool()).convert(
            sample_video_path, temp_dir / "out.mp4"
        )

        assert report.success is True
        assert seen == [(300, 200)] * 10
