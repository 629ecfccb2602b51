"""Media duration probing via ffprobe (or `ffmpeg -i` when ffprobe is absent)."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from voxmend.exceptions import FatalInputError
from voxmend.utils.ffmpeg import resolve_ffmpeg_bin, resolve_ffprobe_bin
from voxmend.utils.subprocess import run_subprocess

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def parse_ffmpeg_duration(stderr: str) -> float | None:
    """Parse `Duration: HH:MM:SS.xx` from `ffmpeg -i` output."""
    match = _DURATION_RE.search(stderr or "")
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class MediaProbe:
    def __init__(
        self,
        *,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        timeout_s: float = 60.0,
    ) -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.ffprobe_bin = resolve_ffprobe_bin(ffprobe_bin)
        self.timeout_s = float(timeout_s)

    async def _probe_with_ffprobe(self, path: str) -> float | None:
        assert self.ffprobe_bin is not None
        result = await run_subprocess(
            [
                self.ffprobe_bin,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                path,
            ],
            timeout_s=self.timeout_s,
        )
        if not result.ok:
            logger.debug("ffprobe failed for %s: %s", path, result.stderr_tail(300))
            return None
        raw = result.stdout.decode("utf-8", errors="replace").strip()
        try:
            return float(raw)
        except ValueError:
            return None

    async def _probe_with_ffmpeg(self, path: str) -> float | None:
        # `ffmpeg -i` without an output exits non-zero but still prints the header.
        result = await run_subprocess(
            [self.ffmpeg_bin, "-hide_banner", "-i", path],
            timeout_s=self.timeout_s,
        )
        return parse_ffmpeg_duration(result.stderr.decode("utf-8", errors="replace"))

    async def probe_duration(self, path: str) -> float:
        """Return the total duration of `path` in seconds.

        Raises:
            FatalInputError: file missing, undecodable, or no positive duration.
        """
        if not Path(path).is_file():
            raise FatalInputError(str(path), "audio file not found")

        try:
            duration: float | None = None
            if self.ffprobe_bin:
                duration = await self._probe_with_ffprobe(str(path))
            if duration is None:
                duration = await self._probe_with_ffmpeg(str(path))
        except FileNotFoundError as exc:
            raise FatalInputError(
                str(path),
                f"ffmpeg binary not found: {self.ffmpeg_bin}. Install ffmpeg or `imageio-ffmpeg`.",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise FatalInputError(str(path), f"probe timed out after {self.timeout_s}s") from exc

        if duration is None or duration <= 0:
            raise FatalInputError(str(path), "could not determine audio duration")
        logger.debug("probe done (path=%s, duration_s=%.3f)", path, duration)
        return float(duration)
