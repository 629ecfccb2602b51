"""Progress reporting protocols shared by pipeline stages."""

from __future__ import annotations

import time
from typing import Protocol, TypedDict, runtime_checkable

from voxmend.pipeline.concurrency import ConcurrencyGate


class ProgressReporter(Protocol):
    async def report(self, progress: int, message: str) -> None: ...


class StageMetrics(TypedDict, total=False):
    stage: str
    progress: int
    progress_message: str

    items_processed: int
    items_total: int
    items_failed: int
    items_per_second: float

    active_tasks: int
    max_concurrent: int


@runtime_checkable
class MetricsProgressReporter(ProgressReporter, Protocol):
    async def report_metrics(self, metrics: StageMetrics) -> None: ...


class StageProgress:
    """Counts finished units of one stage and forwards them to a reporter."""

    def __init__(
        self,
        stage: str,
        total: int,
        reporter: ProgressReporter | None,
        *,
        gate: ConcurrencyGate | None = None,
        label: str = "units",
    ) -> None:
        self.stage = stage
        self.total = int(total)
        self.reporter = reporter
        self.gate = gate
        self.label = label
        self.done = 0
        self.failed = 0
        self._started_at = time.monotonic()

    async def start(self) -> None:
        await self._emit()

    async def advance(self, *, failed: bool = False) -> None:
        self.done += 1
        if failed:
            self.failed += 1
        await self._emit()

    async def _emit(self) -> None:
        if not self.reporter or self.total <= 0:
            return
        pct = int(self.done / self.total * 100)
        message = f"{self.stage} {self.done}/{self.total} {self.label}"
        if isinstance(self.reporter, MetricsProgressReporter):
            elapsed = max(0.001, time.monotonic() - self._started_at)
            metrics: StageMetrics = {
                "stage": self.stage,
                "progress": pct,
                "progress_message": message,
                "items_processed": int(self.done),
                "items_total": int(self.total),
                "items_failed": int(self.failed),
                "items_per_second": float(self.done) / elapsed,
            }
            if self.gate is not None:
                state = self.gate.snapshot()
                metrics["active_tasks"] = int(state.active)
                metrics["max_concurrent"] = int(state.max)
            await self.reporter.report_metrics(metrics)
        else:
            await self.reporter.report(pct, message)
