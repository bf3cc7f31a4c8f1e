from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from core.contracts.models import Commit, CommitAuthor, PullRequest

API = "https://api.github.com"


def json_response(
    payload: Any,
    status_code: int = 200,
    url: str = f"{API}/",
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """Builds a real httpx.Response bound to a request, so raise_for_status works."""
    return httpx.Response(
        status_code,
        json=payload,
        headers=headers,
        request=httpx.Request(method, url),
    )


def next_link(url: str) -> Dict[str, str]:
    return {"link": f'<{url}>; rel="next", <{url}>; rel="last"'}


def commit_record(sha: str, login: str = "alice", date: str = "2025-01-01T00:00:00Z", message: str = "fix: a bug", files=None) -> Dict[str, Any]:
    record = {
        "sha": sha,
        "commit": {"message": message, "author": {"name": login.title(), "date": date}},
        "author": {"login": login},
    }
    if files is not None:
        record["files"] = [{"filename": f} for f in files]
    return record


def pr_record(number: int, merged_at: Optional[str], login: str = "alice", labels=()) -> Dict[str, Any]:
    return {
        "number": number,
        "title": f"PR {number}",
        "body": None,
        "user": {"login": login},
        "merged_at": merged_at,
        "labels": [{"name": name} for name in labels],
    }


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_commit(sha="abcdef1234567", login="alice", when=None, message="feat: add thing", files=None) -> Commit:
    return Commit(
        sha=sha,
        message=message,
        author=CommitAuthor(login=login, name=login.title()),
        date=when or utc(2025, 1, 1),
        files=files,
    )


def make_pr(number=1, author="alice", merged_at=None, title="Add thing", body="", labels=None) -> PullRequest:
    return PullRequest(
        number=number,
        title=title,
        body=body,
        author=author,
        merged_at=merged_at or utc(2025, 1, 1),
        labels=labels or [],
    )
