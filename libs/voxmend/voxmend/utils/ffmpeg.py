"""FFmpeg / ffprobe binary resolution helpers.

Prefer system binaries, fallback to the `imageio-ffmpeg` bundled ffmpeg
(it ships no ffprobe, so probing falls back to parsing `ffmpeg -i`).
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()

    if Path(ffmpeg_bin).exists():
        return ffmpeg_bin

    found = shutil.which(ffmpeg_bin)
    if found:
        return found

    try:
        import imageio_ffmpeg

        return str(imageio_ffmpeg.get_ffmpeg_exe())
    except Exception as exc:
        logger.warning("failed to resolve bundled ffmpeg (%s); fallback to %r", exc, ffmpeg_bin)
        return ffmpeg_bin


def resolve_ffprobe_bin(ffprobe_bin: str = "ffprobe") -> str | None:
    """Return a runnable ffprobe path, or None when only ffmpeg is available."""
    ffprobe_bin = (ffprobe_bin or "ffprobe").strip()
    if Path(ffprobe_bin).exists():
        return ffprobe_bin
    return shutil.which(ffprobe_bin)
