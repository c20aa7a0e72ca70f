from __future__ import annotations

import asyncio
import logging

from .errors import GitExecutionError
from .git_runner import AsyncGitRunner
from .models import GitStats
from .parsers import parse_count, parse_unix_seconds_ms


logger = logging.getLogger(__name__)


async def _stdout_or_empty(runner: AsyncGitRunner, args: list[str]) -> str:
    try:
        res = await runner.run(args)
    except GitExecutionError as e:
        logger.warning("git %s failed: %s", " ".join(args), e)
        return ""
    if res.exit_code != 0:
        logger.warning("git %s failed: %s", " ".join(args), res.stderr.strip())
        return ""
    return res.stdout


async def collect_git_stats(runner: AsyncGitRunner, ref: str) -> GitStats:
    """
    Commit count and latest commit time for `ref`. Unknown values are None.
    """
    if not ref or ref.startswith("-"):
        return GitStats()

    # Peel to the commit: tags count their commit, trees have no history.
    commit = f"{ref}^{{commit}}"
    count_out, time_out = await asyncio.gather(
        _stdout_or_empty(runner, ["rev-list", "--count", commit]),
        _stdout_or_empty(runner, ["show", "-s", "--format=%ct", commit]),
    )
    return GitStats(
        total_commits=parse_count(count_out),
        latest_commit_timestamp=parse_unix_seconds_ms(time_out),
    )
