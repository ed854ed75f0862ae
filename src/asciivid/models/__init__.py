"""Data models for asciivid."""

from asciivid.models.schema import PipelineRun, PipelineState, RunReport, VideoMetadata

__all__ = ["PipelineRun", "PipelineState", "RunReport", "VideoMetadata"]
