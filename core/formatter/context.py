from typing import Sequence

from core.contracts.models import Commit, PullRequest

PR_BODY_PREVIEW = 200


def format_commits_for_context(commits: Sequence[Commit]) -> str:
    """One line per commit: short SHA, author login, subject and file count."""
    if not commits:
        return "No commits in this time period."

    lines = []
    for c in commits:
        files = f" [{len(c.files)} files]" if c.files else ""
        lines.append(f"- {c.short_sha} ({c.author.login}): {c.first_line}{files}")
    return "\n".join(lines)


def format_prs_for_context(prs: Sequence[PullRequest]) -> str:
    """One entry per PR, with labels and the start of the body on a second line."""
    if not prs:
        return "No pull requests in this time period."

    entries = []
    for pr in prs:
        labels = f" [{', '.join(pr.labels)}]" if pr.labels else ""
        body = ""
        if pr.body:
            ellipsis = "..." if len(pr.body) > PR_BODY_PREVIEW else ""
            body = f"\n  {pr.body[:PR_BODY_PREVIEW]}{ellipsis}"
        entries.append(f"- PR #{pr.number} ({pr.author}): {pr.title}{labels}{body}")
    return "\n".join(entries)
