"""Audio utilities (FFmpeg helpers)."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from voxmend.utils.subprocess import run_subprocess

logger = logging.getLogger(__name__)


async def cut_audio_segment(
    input_path: str,
    output_path: str,
    start: float,
    end: float,
    *,
    ffmpeg_bin: str = "ffmpeg",
    codec: str = "libmp3lame",
    bitrate: str = "96k",
    timeout_s: float | None = None,
) -> None:
    """Re-encode [start, end) of `input_path` into a standalone file.

    Raises:
        ValueError: empty or inverted range.
        RuntimeError: ffmpeg exited non-zero.
    """
    if end <= start:
        raise ValueError("end must be greater than start")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        ffmpeg_bin,
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-ss",
        f"{float(start):.3f}",
        "-i",
        input_path,
        "-t",
        f"{float(end) - float(start):.3f}",
        "-vn",
        "-c:a",
        codec,
        "-b:a",
        bitrate,
        str(output),
    ]
    result = await run_subprocess(cmd, timeout_s=timeout_s)
    if not result.ok:
        raise RuntimeError(
            f"ffmpeg cut failed (code={result.returncode}): {' '.join(cmd)}\n{result.stderr_tail()}"
        )


def cleanup_segment_files(paths: list[str]) -> int:
    """Delete files, ignoring ones already gone. Returns the number removed."""
    removed = 0
    for path in paths:
        try:
            os.remove(path)
            removed += 1
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("failed to remove segment file %s: %s", path, exc)
    return removed
