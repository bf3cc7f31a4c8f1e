from typing import Dict, List, Sequence

from core.contracts.models import Commit, ContributorStats, PullRequest

MAX_RECENT_MESSAGES = 10


def group_by_contributor(commits: Sequence[Commit], prs: Sequence[PullRequest]) -> List[ContributorStats]:
    """
    Aggregates commits and merged PRs per author login.

    Result is ordered by commits + PRs, most active first; ties keep the
    order in which contributors were first seen.
    """
    stats: Dict[str, ContributorStats] = {}

    for commit in commits:
        login = commit.author.login
        entry = stats.setdefault(login, ContributorStats(login=login, name=commit.author.name))
        entry.commit_count += 1

        if len(entry.recent_messages) < MAX_RECENT_MESSAGES:
            entry.recent_messages.append(commit.first_line)

        for path in commit.files or []:
            if path not in entry.files:
                entry.files.append(path)

    for pr in prs:
        entry = stats.setdefault(pr.author, ContributorStats(login=pr.author, name=pr.author))
        entry.pr_count += 1

    return sorted(stats.values(), key=lambda s: s.total, reverse=True)
