"""Batch execution of per-frame stage functions.

Items are processed in fixed-size contiguous chunks so progress can be
reported (and memory released) after each chunk. The stage function decides
for itself whether an item's artifact already exists; the executor only
counts outcomes.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence, TypeVar

from tqdm import tqdm

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageOutcome(str, Enum):
    """Result of running a stage function on one item."""

    DONE = "done"
    SKIPPED = "skipped"  # Artifact already existed; no work performed
    FAILED = "failed"


ProgressCallback = Callable[[int, int, str], None]


@dataclass
class BatchResult:
    """Outcome counts of a batch run."""

    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.succeeded + self.skipped + self.failed

    def record(self, outcome: StageOutcome) -> None:
        if outcome is StageOutcome.DONE:
            self.succeeded += 1
        elif outcome is StageOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


class TqdmProgress:
    """Progress callback drawing one tqdm bar per stage label."""

    def __init__(self, disable: bool = False, unit: str = "frame") -> None:
        self.disable = disable
        self.unit = unit
        self._bars: dict[str, tqdm] = {}

    def __call__(self, completed: int, total: int, label: str) -> None:
        bar = self._bars.get(label)
        if bar is None:
            bar = tqdm(total=total, desc=label, unit=self.unit, disable=self.disable, leave=True)
            self._bars[label] = bar

        bar.update(completed - bar.n)

        if completed >= total:
            bar.close()
            del self._bars[label]


def _run_item(stage_fn: Callable[[T], StageOutcome], item: T, label: str) -> StageOutcome:
    try:
        return stage_fn(item)
    except Exception as e:
        logger.warning(f"{label}: item {item!r} failed: {e}")
        return StageOutcome.FAILED


def run_batches(
    items: Sequence[T],
    batch_size: int,
    stage_fn: Callable[[T], StageOutcome],
    on_batch_complete: ProgressCallback | None = None,
    label: str = "",
    workers: int = 1,
) -> BatchResult:
    """Drive ``items`` through ``stage_fn`` in contiguous chunks.

    Args:
        items: Ordered work items.
        batch_size: Items per chunk.
        stage_fn: Called once per item. Returns SKIPPED when the item's
            artifact already exists. Exceptions count as FAILED and never
            abort the run.
        on_batch_complete: Called once per chunk with the cumulative number of
            items processed, the total, and ``label``.
        label: Caller-supplied stage label passed to the callback.
        workers: Run the stage calls of a chunk on this many threads. Outcomes
            are still collected in item order.

    Returns:
        BatchResult with outcome counts.

    Raises:
        ValueError: If batch_size or workers is not positive.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if workers < 1:
        raise ValueError(f"workers must be positive, got {workers}")

    total = len(items)
    result = BatchResult(total=total)
    executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None

    try:
        for start in range(0, total, batch_size):
            chunk = items[start:start + batch_size]

            if executor is not None:
                outcomes = list(executor.map(lambda item: _run_item(stage_fn, item, label), chunk))
            else:
                outcomes = [_run_item(stage_fn, item, label) for item in chunk]

            for outcome in outcomes:
                result.record(outcome)

            if on_batch_complete is not None:
                on_batch_complete(start + len(chunk), total, label)
    finally:
        if executor is not None:
            executor.shutdown()

    return result
