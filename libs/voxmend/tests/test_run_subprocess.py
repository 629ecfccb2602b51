import pytest

from voxmend.utils.subprocess import RunResult, run_subprocess


@pytest.mark.asyncio
async def test_run_subprocess_executes_command() -> None:
    result = await run_subprocess(["bash", "-c", "echo -n hi"])
    assert result.returncode == 0
    assert result.ok
    assert result.stdout == b"hi"


@pytest.mark.asyncio
async def test_run_subprocess_reports_failure_without_raising() -> None:
    result = await run_subprocess(["bash", "-c", "echo -n oops >&2; exit 3"])
    assert result.returncode == 3
    assert not result.ok
    assert result.stderr_tail() == "oops"


@pytest.mark.asyncio
async def test_run_subprocess_missing_binary_raises() -> None:
    with pytest.raises(FileNotFoundError):
        await run_subprocess(["voxmend-no-such-binary"])


def test_stderr_tail_keeps_the_end() -> None:
    result = RunResult(returncode=1, stdout=b"", stderr=b"a" * 10 + b"END")
    assert result.stderr_tail(limit=3) == "…END"
