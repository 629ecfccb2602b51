from __future__ import annotations

import asyncio
import random
from pathlib import Path

import pytest

from voxmend.exceptions import ProviderError
from voxmend.models.segment import AudioSegment
from voxmend.providers.asr.base import ASRSegment, TranscriptionProvider, TranscriptionResult
from voxmend.stages.transcribe import ChunkTranscriber


class _DelayedProvider(TranscriptionProvider):
    def __init__(self, *, fail_stems: set[str] | None = None, delay_s: float | None = None) -> None:
        self.fail_stems = fail_stems or set()
        self.delay_s = delay_s
        self.in_flight = 0
        self.peak = 0
        self.calls: list[str] = []

    async def transcribe(self, audio_path: str, language: str | None = None) -> TranscriptionResult:
        stem = Path(audio_path).stem
        self.calls.append(stem)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay_s if self.delay_s is not None else random.uniform(0, 0.02))
            if stem in self.fail_stems:
                raise ProviderError("fake", f"quota exceeded for {stem}")
            return TranscriptionResult(
                text=f"{stem} text.",
                segments=[ASRSegment(text=f"{stem} text.", start=0.0, end=1.0, confidence=0.9)],
                language=language or "en",
            )
        finally:
            self.in_flight -= 1


class _RecordingReporter:
    def __init__(self) -> None:
        self.events: list[tuple[int, str]] = []

    async def report(self, progress: int, message: str) -> None:
        self.events.append((progress, message))


def _segments(tmp_path: Path, n: int, *, owned: bool = True) -> list[AudioSegment]:
    out: list[AudioSegment] = []
    for i in range(n):
        path = tmp_path / f"seg{i}.mp3"
        path.write_bytes(b"x")
        out.append(AudioSegment(index=i, start=i * 2.0, end=(i + 1) * 2.0, path=str(path), owned=owned))
    return out


@pytest.mark.asyncio
async def test_transcribe_keeps_index_order_under_random_delays(tmp_path) -> None:
    provider = _DelayedProvider()
    segments = _segments(tmp_path, 12)
    reporter = _RecordingReporter()

    fragments = await ChunkTranscriber(provider, concurrency=3).transcribe(
        segments, "en", progress_reporter=reporter
    )

    assert [f.text for f in fragments] == [f"seg{i} text." for i in range(12)]
    assert all(not f.failed for f in fragments)
    assert all(f.duration_s == pytest.approx(2.0) for f in fragments)
    assert 1 <= provider.peak <= 3
    assert reporter.events[0][0] == 0
    assert reporter.events[-1][0] == 100
    assert not any(Path(s.path).exists() for s in segments)


@pytest.mark.asyncio
async def test_transcribe_failures_become_fallback_fragments(tmp_path) -> None:
    provider = _DelayedProvider(fail_stems={"seg1", "seg3"})
    segments = _segments(tmp_path, 4)

    fragments = await ChunkTranscriber(provider, concurrency=2).transcribe(segments, None)

    assert len(fragments) == 4
    assert [f.failed for f in fragments] == [False, True, False, True]
    assert fragments[1].text == ""
    assert fragments[1].segments == []
    assert fragments[1].duration_s == 0.0
    assert sorted(provider.calls) == ["seg0", "seg1", "seg2", "seg3"]
    assert not any(Path(s.path).exists() for s in segments)


@pytest.mark.asyncio
async def test_transcribe_total_failure_never_raises(tmp_path) -> None:
    provider = _DelayedProvider(fail_stems={f"seg{i}" for i in range(3)})
    fragments = await ChunkTranscriber(provider).transcribe(_segments(tmp_path, 3), "en")
    assert [f.failed for f in fragments] == [True, True, True]


@pytest.mark.asyncio
async def test_transcribe_call_timeout_uses_fallback(tmp_path) -> None:
    provider = _DelayedProvider(delay_s=1.0)
    fragments = await ChunkTranscriber(provider, call_timeout_s=0.05).transcribe(
        _segments(tmp_path, 2), "en"
    )
    assert [f.failed for f in fragments] == [True, True]


@pytest.mark.asyncio
async def test_transcribe_does_not_delete_source_file(tmp_path) -> None:
    segments = _segments(tmp_path, 1, owned=False)
    fragments = await ChunkTranscriber(_DelayedProvider()).transcribe(segments, "en")
    assert fragments[0].text == "seg0 text."
    assert Path(segments[0].path).exists()


@pytest.mark.asyncio
async def test_transcribe_abandoned_request_skips_provider(tmp_path) -> None:
    provider = _DelayedProvider()
    abandoned = asyncio.Event()
    abandoned.set()

    fragments = await ChunkTranscriber(provider).transcribe(
        _segments(tmp_path, 3), "en", abandoned=abandoned
    )

    assert provider.calls == []
    assert all(f.failed for f in fragments)


@pytest.mark.asyncio
async def test_transcribe_synthesizes_segment_when_provider_returns_text_only(tmp_path) -> None:
    class _TextOnly(TranscriptionProvider):
        async def transcribe(self, audio_path: str, language: str | None = None) -> TranscriptionResult:
            return TranscriptionResult(text="Hello.", duration_s=3.5)

    (fragment,) = await ChunkTranscriber(_TextOnly()).transcribe(_segments(tmp_path, 1), "en")
    assert fragment.duration_s == 3.5
    assert [(s.text, s.start, s.end) for s in fragment.segments] == [("Hello.", 0.0, 3.5)]
