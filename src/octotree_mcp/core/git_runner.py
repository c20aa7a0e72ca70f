from __future__ import annotations

import asyncio
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterable

from .errors import GitExecutionError, GitPolicyError
from .models import GitRunResult
from .security import resolve_root


_CHUNK_SIZE = 64 * 1024


def _kill_process_group_posix(p: asyncio.subprocess.Process) -> None:
    """
    Kill entire process group on POSIX when start_new_session=True.
    Fallbacks to p.kill() if group kill fails.
    """
    try:
        os.killpg(p.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError, OSError):
        try:
            p.kill()
        except ProcessLookupError:
            pass


def _kill(p: asyncio.subprocess.Process) -> None:
    if p.returncode is not None:
        return
    if os.name == "nt":
        try:
            p.kill()
        except ProcessLookupError:
            pass
    else:
        _kill_process_group_posix(p)


def failure_message(args: list[str], stderr: str, exit_code: int) -> str:
    """stderr when git printed one, otherwise a message naming the failed command."""
    detail = stderr.strip()
    if detail:
        return detail
    return f"git {' '.join(args)} exited with code {exit_code}"


def require_ok(res: GitRunResult, context: str) -> GitRunResult:
    if res.exit_code != 0:
        msg = failure_message(res.argv[1:], res.stderr, res.exit_code)
        raise GitExecutionError(f"{context} failed: {msg}")
    return res


@dataclass(frozen=True)
class GitRunnerConfig:
    """
    Runner configuration.

    `timeout_s` is None by default: tree builds set no deadline of their own.
    """
    timeout_s: float | None = None

    # Read-only allowlist: the tree builder never needs anything else.
    read_only_allowlist: tuple[str, ...] = (
        "rev-parse",
        "cat-file",
        "ls-tree",
        "ls-files",
        "show",
        "rev-list",
    )


class AsyncGitRunner:
    """
    Read-only asyncio git runner:
      - No shell
      - Enforces cwd=root
      - Optional hard timeout that kills the process group
      - Standardized result: stdout/stderr/exit_code/duration_ms
      - Record streaming for listings that may not fit in memory
    """

    def __init__(self, root: str | Path, config: GitRunnerConfig | None = None) -> None:
        self.root = resolve_root(root)
        self.config = config or GitRunnerConfig()

    async def run(self, args: Iterable[str]) -> GitRunResult:
        args_list = list(args)
        self._validate_args(args_list)

        argv = ["git", *args_list]
        start = time.perf_counter()
        p = await self._spawn(argv)

        timed_out = False
        try:
            out, err = await asyncio.wait_for(p.communicate(), timeout=self.config.timeout_s)
            exit_code = int(p.returncode or 0)
        except asyncio.TimeoutError:
            timed_out = True
            _kill(p)
            await p.wait()
            out, err = b"", b""
            exit_code = 124
        except BaseException:
            # Ensure process is not left running
            _kill(p)
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)

        return GitRunResult(
            argv=argv,
            root=str(self.root),
            stdout=_decode(out),
            stderr=_decode(err),
            exit_code=exit_code,
            duration_ms=duration_ms,
            timed_out=timed_out,
        )

    async def output(self, args: Iterable[str], *, context: str) -> str:
        """Run and return stripped stdout, raising GitExecutionError on failure."""
        res = require_ok(await self.run(args), context=context)
        return res.stdout.strip()

    async def stream_lines(self, args: Iterable[str], *, sep: bytes = b"\n") -> AsyncIterator[str]:
        """
        Yield stdout records as git produces them, without the separator.

        Pass sep=b"\\0" together with git's `-z` so paths come through verbatim.
        stderr is drained concurrently so a chatty child cannot block on a full
        pipe. `timeout_s` bounds the whole stream. Raises GitExecutionError
        after the last record if git exits non-zero or runs out of time.
        """
        args_list = list(args)
        self._validate_args(args_list)

        argv = ["git", *args_list]
        p = await self._spawn(argv)
        assert p.stdout is not None and p.stderr is not None
        stderr_task = asyncio.ensure_future(p.stderr.read())

        loop = asyncio.get_running_loop()
        deadline = None if self.config.timeout_s is None else loop.time() + self.config.timeout_s
        pending = b""
        try:
            while True:
                remaining = None if deadline is None else max(0.0, deadline - loop.time())
                try:
                    chunk = await asyncio.wait_for(p.stdout.read(_CHUNK_SIZE), timeout=remaining)
                except asyncio.TimeoutError:
                    raise GitExecutionError(
                        f"git {' '.join(args_list)} timed out after {self.config.timeout_s}s"
                    ) from None
                if not chunk:
                    break
                *records, pending = (pending + chunk).split(sep)
                for record in records:
                    yield _decode_record(record, sep)
            if pending:
                yield _decode_record(pending, sep)
            exit_code = await p.wait()
            err = await stderr_task
        finally:
            if p.returncode is None:
                # Consumer stopped early, was cancelled, or the deadline passed.
                _kill(p)
                await p.wait()
            if not stderr_task.done():
                stderr_task.cancel()

        if exit_code != 0:
            raise GitExecutionError(failure_message(args_list, _decode(err), exit_code))

    def _validate_args(self, args_list: list[str]) -> None:
        if not args_list:
            raise GitPolicyError("Empty git args are not allowed.")

        subcmd = args_list[0].strip().lower()
        if subcmd not in self.config.read_only_allowlist:
            raise GitPolicyError(
                f"Blocked git subcommand in read-only mode: '{subcmd}'. "
                f"Allowed: {', '.join(self.config.read_only_allowlist)}"
            )

    def _build_env(self) -> dict[str, str]:
        """
        Build a controlled environment that prevents interactive hangs.
        """
        merged_env = dict(os.environ)
        merged_env.update(
            {
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_PAGER": "cat",
                "LC_ALL": "C",
                "GIT_OPTIONAL_LOCKS": "0",
            }
        )
        return merged_env

    async def _spawn(self, argv: list[str]) -> asyncio.subprocess.Process:
        # POSIX: allow killing full process group
        popen_kwargs: dict = {}
        if os.name != "nt":
            popen_kwargs["start_new_session"] = True

        try:
            return await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(self.root),
                env=self._build_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **popen_kwargs,
            )
        except FileNotFoundError as e:
            # git binary not found
            raise GitExecutionError("git executable not found in PATH.") from e
        except OSError as e:
            raise GitExecutionError(f"Failed to spawn git: {type(e).__name__}: {e}") from e


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _decode_record(record: bytes, sep: bytes) -> str:
    text = _decode(record)
    return text.rstrip("\r") if sep == b"\n" else text
