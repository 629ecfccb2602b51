"""Split oversized audio into byte-budgeted, time-bounded segments.

The segment length is derived from the larger of the source's average byte
rate and the re-encode bitrate, so each extracted file stays under
`max_bytes`. Files already within budget are passed through untouched
(no re-encode).
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
import subprocess
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from voxmend.config import Settings
from voxmend.error_codes import ErrorCode
from voxmend.exceptions import FatalInputError
from voxmend.models.segment import AudioSegment
from voxmend.pipeline.concurrency import ConcurrencyGate
from voxmend.utils.audio import cleanup_segment_files, cut_audio_segment
from voxmend.utils.ffmpeg import resolve_ffmpeg_bin
from voxmend.utils.media_probe import MediaProbe

logger = logging.getLogger(__name__)

# Container headers and frame padding on top of the nominal encode bitrate.
_ENCODE_OVERHEAD = 1.05

_BITRATE_UNITS = {"k": 1_000, "m": 1_000_000}


def parse_bitrate(value: str) -> int:
    """Parse an ffmpeg bitrate such as `96k`, `1M` or `64000` into bits per second."""
    raw = str(value or "").strip().lower()
    unit = _BITRATE_UNITS.get(raw[-1:], 1) if raw else 1
    number = raw[:-1] if unit != 1 else raw
    try:
        bps = float(number) * unit
    except ValueError as exc:
        raise ValueError(f"invalid bitrate: {value!r}") from exc
    if bps <= 0:
        raise ValueError(f"invalid bitrate: {value!r}")
    return int(bps)


def plan_segment_bounds(
    duration_s: float,
    size_bytes: int,
    max_bytes: int,
    *,
    encode_bitrate_bps: int = 0,
) -> list[tuple[float, float]]:
    """Return contiguous `(start, end)` bounds covering `[0, duration_s]`.

    Segments are re-encoded at `encode_bitrate_bps`; when that is above the
    source's own byte rate it sets the segment length instead.
    """
    duration_s = float(duration_s)
    if duration_s <= 0:
        raise ValueError("duration_s must be > 0")
    if int(max_bytes) <= 0:
        raise ValueError("max_bytes must be > 0")

    if int(size_bytes) <= int(max_bytes):
        return [(0.0, duration_s)]

    bytes_per_second = max(
        float(size_bytes) / duration_s,
        float(encode_bitrate_bps) / 8.0 * _ENCODE_OVERHEAD,
    )
    segment_s = float(max_bytes) / bytes_per_second
    # Round away float noise so 3.0000000001 segments does not become 4.
    count = max(1, math.ceil(round(duration_s / segment_s, 9)))

    bounds: list[tuple[float, float]] = []
    for i in range(count):
        start = i * segment_s
        end = duration_s if i == count - 1 else min((i + 1) * segment_s, duration_s)
        bounds.append((start, end))
    return bounds


class AudioSegmenter:
    def __init__(
        self,
        *,
        probe: MediaProbe | None = None,
        ffmpeg_bin: str = "ffmpeg",
        codec: str = "libmp3lame",
        bitrate: str = "96k",
        extension: str = "mp3",
        max_concurrent: int = 4,
        workdir_root: str | None = None,
    ) -> None:
        self.probe = probe or MediaProbe(ffmpeg_bin=ffmpeg_bin)
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.codec = codec
        self.bitrate = bitrate
        self.encode_bitrate_bps = parse_bitrate(bitrate)
        self.extension = extension.lstrip(".") or "mp3"
        self.max_concurrent = max(1, int(max_concurrent))
        self.workdir_root = Path(workdir_root) if workdir_root else Path("data") / "workdir"

    @classmethod
    def from_settings(cls, settings: Settings) -> "AudioSegmenter":
        audio = settings.audio
        return cls(
            probe=MediaProbe(
                ffmpeg_bin=audio.ffmpeg_bin,
                ffprobe_bin=audio.ffprobe_bin,
                timeout_s=float(audio.probe_timeout_s),
            ),
            ffmpeg_bin=audio.ffmpeg_bin,
            codec=audio.segment_codec,
            bitrate=audio.segment_bitrate,
            extension=audio.segment_extension,
            max_concurrent=int(audio.ffmpeg_concurrency),
            workdir_root=str(settings.workdir),
        )

    async def segment(
        self,
        path: str,
        max_bytes: int,
        *,
        work_dir: str,
    ) -> list[AudioSegment]:
        """Compute bounds for `path` and extract each one into `work_dir`.

        Raises:
            FatalInputError: duration unknown or a segment could not be extracted.
        """
        duration_s = await self.probe.probe_duration(str(path))
        try:
            size_bytes = os.path.getsize(path)
        except OSError as exc:
            raise FatalInputError(str(path), f"cannot stat audio file: {exc}") from exc

        bounds = plan_segment_bounds(
            duration_s,
            size_bytes,
            max_bytes,
            encode_bitrate_bps=self.encode_bitrate_bps,
        )
        if len(bounds) == 1:
            logger.info(
                "segment fast path (path=%s, size_bytes=%d, duration_s=%.2f)",
                path,
                size_bytes,
                duration_s,
            )
            return [AudioSegment(index=0, start=0.0, end=duration_s, path=str(path), owned=False)]

        out_dir = Path(work_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "segment start (path=%s, size_bytes=%d, duration_s=%.2f, segments=%d, segment_s=%.2f)",
            path,
            size_bytes,
            duration_s,
            len(bounds),
            bounds[0][1] - bounds[0][0],
        )

        gate = ConcurrencyGate("ffmpeg", self.max_concurrent)
        segments: list[AudioSegment | None] = [None] * len(bounds)

        async def _extract(index: int, start: float, end: float) -> None:
            out_path = out_dir / f"segment_{index:04d}.{self.extension}"
            async with gate.acquire():
                await cut_audio_segment(
                    str(path),
                    str(out_path),
                    start,
                    end,
                    ffmpeg_bin=self.ffmpeg_bin,
                    codec=self.codec,
                    bitrate=self.bitrate,
                )
            segments[index] = AudioSegment(
                index=index, start=float(start), end=float(end), path=str(out_path), owned=True
            )

        # Wait for every cut (no orphaned ffmpeg writes) before surfacing the first error.
        results = await asyncio.gather(
            *[_extract(i, s, e) for i, (s, e) in enumerate(bounds)],
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, (RuntimeError, ValueError, OSError, subprocess.SubprocessError)):
                raise FatalInputError(
                    str(path),
                    f"segment extraction failed: {result}",
                    error_code=ErrorCode.SEGMENTATION_FAILED,
                ) from result
            if isinstance(result, BaseException):
                raise result

        logger.info("segment done (path=%s, segments=%d)", path, len(bounds))
        return [s for s in segments if s is not None]

    @asynccontextmanager
    async def open(
        self,
        path: str,
        max_bytes: int,
        *,
        run_id: str | None = None,
    ) -> AsyncIterator[list[AudioSegment]]:
        """Segment `path` inside a private work dir that is always removed on exit."""
        work_dir = self.workdir_root / (run_id or uuid.uuid4().hex)
        try:
            yield await self.segment(path, max_bytes, work_dir=str(work_dir))
        finally:
            remove_work_dir(work_dir)


def remove_work_dir(work_dir: Path) -> None:
    if not work_dir.exists():
        return
    cleanup_segment_files([str(p) for p in work_dir.iterdir() if p.is_file()])
    try:
        work_dir.rmdir()
    except OSError as exc:
        logger.debug("failed to remove temp dir %s: %s", work_dir, exc)
