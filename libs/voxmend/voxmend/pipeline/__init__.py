"""Pipeline orchestration.

Stages and utilities import `voxmend.pipeline.concurrency` / `.context`; keep
the orchestrator import lazy to avoid a cycle with `voxmend.stages`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from voxmend.pipeline.orchestrator import TranscriptionPipeline

__all__ = ["TranscriptionPipeline"]


def __getattr__(name: str) -> Any:
    if name == "TranscriptionPipeline":
        from voxmend.pipeline.orchestrator import TranscriptionPipeline

        return TranscriptionPipeline
    raise AttributeError(name)
