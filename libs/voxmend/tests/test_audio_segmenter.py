from __future__ import annotations

from pathlib import Path

import pytest

from voxmend.error_codes import ErrorCode
from voxmend.exceptions import FatalInputError
from voxmend.utils import audio_segmenter as segmenter_mod
from voxmend.utils import media_probe as media_probe_mod
from voxmend.utils.audio_segmenter import AudioSegmenter, parse_bitrate, plan_segment_bounds
from voxmend.utils.ffmpeg import resolve_ffmpeg_bin
from voxmend.utils.media_probe import MediaProbe, parse_ffmpeg_duration
from voxmend.utils.subprocess import RunResult, run_subprocess


class _FakeProbe:
    def __init__(self, duration_s: float) -> None:
        self.duration_s = duration_s

    async def probe_duration(self, path: str) -> float:  # noqa: ARG002
        return self.duration_s


def _write(path: Path, size: int) -> Path:
    path.write_bytes(b"\0" * size)
    return path


def _fake_cut(calls: list[tuple[float, float]], *, fail_at: float | None = None):  # noqa: ANN202
    async def _cut(input_path, output_path, start, end, **kwargs):  # noqa: ANN001, ARG001
        if fail_at is not None and start == pytest.approx(fail_at):
            raise RuntimeError("ffmpeg cut failed (code=1)")
        calls.append((float(start), float(end)))
        Path(output_path).write_bytes(b"x")

    return _cut


def test_plan_segment_bounds_fast_path() -> None:
    assert plan_segment_bounds(12.5, 100, 100) == [(0.0, 12.5)]


def test_plan_segment_bounds_are_contiguous_and_cover_duration() -> None:
    bounds = plan_segment_bounds(10.0, 100, 30)
    assert len(bounds) == 4
    assert bounds[0][0] == 0.0
    assert bounds[-1][1] == 10.0
    for (_, prev_end), (start, _) in zip(bounds, bounds[1:]):
        assert start == pytest.approx(prev_end)
    assert sum(end - start for start, end in bounds) == pytest.approx(10.0)


def test_plan_segment_bounds_exact_division() -> None:
    bounds = plan_segment_bounds(9.0, 90, 30)
    assert len(bounds) == 3
    assert bounds[-1] == (pytest.approx(6.0), 9.0)


def test_plan_segment_bounds_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        plan_segment_bounds(0.0, 100, 10)
    with pytest.raises(ValueError):
        plan_segment_bounds(10.0, 100, 0)


@pytest.mark.asyncio
async def test_segment_fast_path_returns_source_untouched(tmp_path, monkeypatch) -> None:
    calls: list[tuple[float, float]] = []
    monkeypatch.setattr(segmenter_mod, "cut_audio_segment", _fake_cut(calls))
    src = _write(tmp_path / "short.mp3", 10)
    segmenter = AudioSegmenter(probe=_FakeProbe(12.5), workdir_root=str(tmp_path / "work"))

    segments = await segmenter.segment(str(src), 100, work_dir=str(tmp_path / "work" / "r"))

    assert len(segments) == 1
    assert segments[0].path == str(src)
    assert segments[0].owned is False
    assert (segments[0].start, segments[0].end) == (0.0, 12.5)
    assert calls == []


@pytest.mark.asyncio
async def test_open_extracts_segments_and_always_cleans_up(tmp_path, monkeypatch) -> None:
    calls: list[tuple[float, float]] = []
    monkeypatch.setattr(segmenter_mod, "cut_audio_segment", _fake_cut(calls))
    src = _write(tmp_path / "long.mp3", 300_000)
    segmenter = AudioSegmenter(probe=_FakeProbe(10.0), workdir_root=str(tmp_path / "work"))

    async with segmenter.open(str(src), 90_000, run_id="run1") as segments:
        assert [s.index for s in segments] == [0, 1, 2, 3]
        assert all(s.owned for s in segments)
        assert all(Path(s.path).exists() for s in segments)
        assert Path(segments[0].path).parent == tmp_path / "work" / "run1"
        assert segments[-1].end == 10.0

    assert sorted(calls) == [(s.start, s.end) for s in segments]
    assert not (tmp_path / "work" / "run1").exists()
    assert src.exists()

    with pytest.raises(RuntimeError):
        async with segmenter.open(str(src), 90_000, run_id="run2"):
            raise RuntimeError("boom")
    assert not (tmp_path / "work" / "run2").exists()


@pytest.mark.asyncio
async def test_segment_extraction_failure_is_fatal(tmp_path, monkeypatch) -> None:
    calls: list[tuple[float, float]] = []
    monkeypatch.setattr(segmenter_mod, "cut_audio_segment", _fake_cut(calls, fail_at=5.0))
    src = _write(tmp_path / "long.mp3", 300_000)
    segmenter = AudioSegmenter(probe=_FakeProbe(10.0), workdir_root=str(tmp_path / "work"))

    with pytest.raises(FatalInputError) as exc_info:
        async with segmenter.open(str(src), 150_000, run_id="run1"):
            pass
    assert exc_info.value.error_code == ErrorCode.SEGMENTATION_FAILED
    assert not (tmp_path / "work" / "run1").exists()


def test_parse_ffmpeg_duration() -> None:
    stderr = "Input #0, mp3, from 'a.mp3':\n  Duration: 00:01:02.50, start: 0.025, bitrate: 128 kb/s"
    assert parse_ffmpeg_duration(stderr) == pytest.approx(62.5)
    assert parse_ffmpeg_duration("garbage") is None


@pytest.mark.asyncio
async def test_probe_missing_file_is_fatal(tmp_path) -> None:
    with pytest.raises(FatalInputError):
        await MediaProbe().probe_duration(str(tmp_path / "missing.mp3"))


@pytest.mark.asyncio
async def test_probe_undecodable_file_is_fatal(tmp_path, monkeypatch) -> None:
    src = _write(tmp_path / "junk.mp3", 64)
    seen: list[str] = []

    async def _fake_run(args, **kwargs):  # noqa: ANN001, ARG001
        seen.append(Path(args[0]).name)
        return RunResult(returncode=1, stdout=b"", stderr=b"Invalid data found when processing input")

    monkeypatch.setattr(media_probe_mod, "run_subprocess", _fake_run)
    probe = MediaProbe()
    probe.ffprobe_bin = "ffprobe"

    with pytest.raises(FatalInputError) as exc_info:
        await probe.probe_duration(str(src))
    assert exc_info.value.error_code == ErrorCode.INVALID_MEDIA
    assert seen[0] == "ffprobe"
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_probe_falls_back_to_ffmpeg_header(tmp_path, monkeypatch) -> None:
    src = _write(tmp_path / "a.mp3", 64)

    async def _fake_run(args, **kwargs):  # noqa: ANN001, ARG001
        return RunResult(returncode=1, stdout=b"", stderr=b"  Duration: 00:00:07.25, start: 0.0")

    monkeypatch.setattr(media_probe_mod, "run_subprocess", _fake_run)
    probe = MediaProbe()
    probe.ffprobe_bin = None

    assert await probe.probe_duration(str(src)) == pytest.approx(7.25)


def test_parse_bitrate() -> None:
    assert parse_bitrate("96k") == 96_000
    assert parse_bitrate("1M") == 1_000_000
    assert parse_bitrate("64000") == 64_000
    with pytest.raises(ValueError):
        parse_bitrate("fast")


def test_plan_segment_bounds_uses_encode_bitrate_for_low_bitrate_sources() -> None:
    # 60 s at 32 kbps; segments are re-encoded at 96 kbps.
    bounds = plan_segment_bounds(60.0, 240_000, 100_000, encode_bitrate_bps=96_000)
    longest = max(end - start for start, end in bounds)
    assert longest * 96_000 / 8 <= 100_000
    assert len(bounds) == 8
    assert bounds[-1][1] == 60.0


def test_plan_segment_bounds_source_rate_wins_when_higher() -> None:
    assert plan_segment_bounds(10.0, 400_000, 102_400, encode_bitrate_bps=96_000) == plan_segment_bounds(
        10.0, 400_000, 102_400
    )


@pytest.mark.asyncio
async def test_low_bitrate_source_segments_fit_byte_budget(tmp_path) -> None:
    ffmpeg_bin = resolve_ffmpeg_bin("ffmpeg")
    src = tmp_path / "low.mp3"
    made = await run_subprocess(
        [
            ffmpeg_bin,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "lavfi",
            "-i",
            "sine=frequency=440:duration=60",
            "-ac",
            "1",
            "-c:a",
            "libmp3lame",
            "-b:a",
            "32k",
            str(src),
        ]
    )
    if not made.ok:
        pytest.skip(f"ffmpeg cannot synthesize test audio: {made.stderr_tail(200)}")

    max_bytes = 100_000
    segmenter = AudioSegmenter(workdir_root=str(tmp_path / "work"))
    async with segmenter.open(str(src), max_bytes, run_id="low") as segments:
        sizes = [Path(s.path).stat().st_size for s in segments]

    assert len(sizes) > 1
    assert all(size <= max_bytes for size in sizes)
