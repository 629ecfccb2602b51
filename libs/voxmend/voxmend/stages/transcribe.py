"""Transcription stage: one provider call per audio segment, bounded fan-out."""

from __future__ import annotations

import asyncio
import logging
import time

from voxmend.models.segment import AudioSegment, TranscriptFragment, TranscriptSegment
from voxmend.pipeline.concurrency import ConcurrencyGate
from voxmend.pipeline.context import ProgressReporter, StageProgress
from voxmend.providers.asr.base import TranscriptionProvider, TranscriptionResult
from voxmend.utils.audio import cleanup_segment_files

logger = logging.getLogger(__name__)


def _to_fragment(result: TranscriptionResult, segment: AudioSegment) -> TranscriptFragment:
    duration_s = float(result.duration_s) if result.duration_s and result.duration_s > 0 else segment.duration
    text = (result.text or "").strip()
    segments = [
        TranscriptSegment(
            id=f"segment_{i + 1}",
            text=(s.text or "").strip(),
            start=float(s.start),
            end=float(s.end),
            confidence=float(s.confidence) if s.confidence is not None else 0.0,
        )
        for i, s in enumerate(result.segments)
    ]
    if not text:
        text = " ".join(s.text for s in segments if s.text)
    elif not segments:
        segments = [TranscriptSegment(id="segment_1", text=text, start=0.0, end=duration_s)]
    return TranscriptFragment(
        text=text,
        segments=segments,
        duration_s=duration_s,
        language=result.language or "",
    )


class ChunkTranscriber:
    """Runs a transcription provider over ordered audio segments.

    Failures (including per-call timeouts) never propagate: the unit resolves
    to an empty fallback fragment and siblings keep running.
    """

    name = "transcribe"

    def __init__(
        self,
        provider: TranscriptionProvider,
        *,
        concurrency: int = 4,
        call_timeout_s: float | None = None,
    ) -> None:
        self.provider = provider
        self.concurrency = max(1, int(concurrency))
        self.call_timeout_s = call_timeout_s

    async def transcribe(
        self,
        segments: list[AudioSegment],
        language: str | None = None,
        *,
        progress_reporter: ProgressReporter | None = None,
        abandoned: asyncio.Event | None = None,
    ) -> list[TranscriptFragment]:
        total = len(segments)
        results: list[TranscriptFragment | None] = [None] * total
        gate = ConcurrencyGate("asr", self.concurrency)
        progress = StageProgress(self.name, total, progress_reporter, gate=gate, label="segments")
        started_at = time.monotonic()
        logger.info("transcribe start (segments=%d, concurrency=%d)", total, self.concurrency)
        await progress.start()

        async def _run(position: int, segment: AudioSegment) -> None:
            fragment: TranscriptFragment | None = None
            try:
                async with gate.acquire():
                    if abandoned is not None and abandoned.is_set():
                        logger.info("transcribe skipped, request abandoned (index=%d)", segment.index)
                        fragment = TranscriptFragment.fallback()
                    else:
                        result = await asyncio.wait_for(
                            self.provider.transcribe(segment.path, language),
                            timeout=self.call_timeout_s,
                        )
                        fragment = _to_fragment(result, segment)
            except asyncio.TimeoutError:
                logger.warning(
                    "transcribe timeout, using fallback (index=%d, start=%.2f, end=%.2f, timeout_s=%s)",
                    segment.index,
                    segment.start,
                    segment.end,
                    self.call_timeout_s,
                )
                fragment = TranscriptFragment.fallback()
            except Exception as exc:
                logger.warning(
                    "transcribe failed, using fallback (index=%d, start=%.2f, end=%.2f, error=%s)",
                    segment.index,
                    segment.start,
                    segment.end,
                    exc,
                )
                fragment = TranscriptFragment.fallback()
            finally:
                if segment.owned:
                    cleanup_segment_files([segment.path])

            results[position] = fragment
            await progress.advance(failed=fragment.failed)

        await asyncio.gather(*[_run(i, s) for i, s in enumerate(segments)])

        out = [r if r is not None else TranscriptFragment.fallback() for r in results]
        failed = sum(1 for f in out if f.failed)
        logger.info(
            "transcribe done (segments=%d, failed=%d, peak_concurrency=%d, elapsed_s=%.2f)",
            total,
            failed,
            gate.peak,
            time.monotonic() - started_at,
        )
        return out
