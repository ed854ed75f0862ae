"""asciivid: convert videos into ASCII-art videos, resumably."""

from asciivid.batch import BatchResult, StageOutcome, run_batches
from asciivid.config import PipelineConfig
from asciivid.models.schema import PipelineState, RunReport, VideoMetadata
from asciivid.pipeline import Pipeline, PipelineError
from asciivid.store.cache import StalenessCache

__version__ = "0.1.0"

__all__ = [
    "BatchResult",
    "Pipeline",
    "PipelineConfig",
    "PipelineError",
    "PipelineState",
    "RunReport",
    "StageOutcome",
    "StalenessCache",
    "VideoMetadata",
    "run_batches",
    "__version__",
]
