from typing import List, Sequence

from core.contracts.models import Commit, PullRequest


def correlate_pull_requests(commits: Sequence[Commit], prs: Sequence[PullRequest]) -> List[PullRequest]:
    """
    Picks the PRs merged between the first and last commit dates, inclusive.

    The compare endpoint lists commits oldest first, so the window is taken
    from the list ends as-is. This is a date heuristic, not SHA matching.
    """
    if not commits:
        return []

    oldest = commits[0].date
    newest = commits[-1].date
    return [pr for pr in prs if oldest <= pr.merged_at <= newest]
