"""Run ffmpeg/ffprobe without blocking the event loop.

Commands run through blocking `subprocess.run` on a worker thread
(`asyncio.to_thread`); asyncio child watchers have proven unreliable
in some container runtimes.
"""

from __future__ import annotations

import asyncio
import subprocess
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, limit: int = 2000) -> str:
        """Decoded stderr, keeping only the last `limit` characters."""
        text = self.stderr.decode("utf-8", errors="replace").strip()
        return text if len(text) <= limit else "…" + text[-limit:]


def _run_blocking(args: list[str], capture: bool, check: bool, timeout_s: float | None) -> RunResult:
    sink = subprocess.PIPE if capture else subprocess.DEVNULL
    proc = subprocess.run(args, stdout=sink, stderr=sink, check=check, timeout=timeout_s)
    return RunResult(returncode=int(proc.returncode), stdout=proc.stdout or b"", stderr=proc.stderr or b"")


async def run_subprocess(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    check: bool = False,
    timeout_s: float | None = None,
) -> RunResult:
    """Run `args` on a worker thread and collect its output.

    A non-zero exit is reported through `RunResult` unless `check` is set.
    Raises `FileNotFoundError` when the binary is missing and
    `subprocess.TimeoutExpired` when `timeout_s` elapses.
    """
    return await asyncio.to_thread(_run_blocking, list(args), capture_output, check, timeout_s)
