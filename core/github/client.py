from contextlib import aclosing
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import httpx

from config.models import GitHubConfig
from core.contracts.models import (
    AuthenticatedUser,
    Commit,
    CommitAuthor,
    DateRange,
    PullRequest,
    RateLimitStatus,
)
from core.github.errors import handle_github_error
from utils.errors import AuthenticationError
from utils.logger import logger


def _to_commit(record: Mapping[str, Any], with_files: bool = False) -> Commit:
    """Normalizes a raw GitHub commit record."""
    git_commit = record.get("commit") or {}
    git_author = git_commit.get("author") or {}
    account = record.get("author") or {}

    files: Optional[List[str]] = None
    if with_files and record.get("files") is not None:
        files = [f["filename"] for f in record["files"]]

    return Commit(
        sha=record["sha"],
        message=git_commit.get("message", ""),
        author=CommitAuthor(
            login=account.get("login") or "unknown",
            name=git_author.get("name") or "Unknown",
        ),
        date=git_author.get("date") or datetime.now(timezone.utc),
        files=files,
    )


def _to_pull_request(record: Mapping[str, Any]) -> PullRequest:
    """Normalizes a raw GitHub pull request record. Caller guarantees it was merged."""
    user = record.get("user") or {}
    labels = [
        label if isinstance(label, str) else (label.get("name") or "")
        for label in record.get("labels") or []
    ]
    return PullRequest(
        number=record["number"],
        title=record.get("title") or "",
        body=record.get("body") or "",
        author=user.get("login") or "unknown",
        merged_at=record["merged_at"],
        labels=labels,
    )


class GitHubClient:
    """
    A thin asynchronous client for the GitHub REST endpoints git-sense reads.
    """

    def __init__(self, token: Optional[str], config: Optional[GitHubConfig] = None):
        if not token:
            raise AuthenticationError('Not authenticated with GitHub. Run "git-sense auth" first.')

        self.config = config or GitHubConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=self.config.timeout_sec,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response

    async def _paginate(self, path: str, params: Dict[str, Any]) -> AsyncIterator[List[Dict[str, Any]]]:
        """
        Yields one page of records at a time, following `Link: rel="next"`.

        Pages are only requested when the consumer asks for them, so stopping
        iteration stops the network traffic too.
        """
        url: Optional[str] = path
        query: Optional[Dict[str, Any]] = {**params, "per_page": self.config.per_page}
        page = 1
        while url:
            logger.debug(f"GET {url} (page {page})")
            response = await self._get(url, params=query)
            yield response.json()
            url = response.links.get("next", {}).get("url")
            query = None  # the next link already carries the query string
            page += 1

    async def get_authenticated_user(self) -> AuthenticatedUser:
        try:
            response = await self._get("/user")
        except httpx.HTTPError as e:
            handle_github_error(e)
        data = response.json()
        return AuthenticatedUser(login=data["login"], name=data.get("name"))

    async def check_rate_limit(self) -> RateLimitStatus:
        try:
            response = await self._get("/rate_limit")
        except httpx.HTTPError as e:
            handle_github_error(e)
        rate = response.json()["rate"]
        return RateLimitStatus(
            remaining=rate["remaining"],
            reset=datetime.fromtimestamp(rate["reset"], tz=timezone.utc),
        )

    async def fetch_commits(
        self,
        owner: str,
        repo: str,
        date_range: Optional[DateRange] = None,
        max_count: int = 500,
    ) -> List[Commit]:
        """
        Lists commits on the default branch, newest first.

        The date range is applied server-side. Stops requesting pages as soon
        as `max_count` commits are collected.
        """
        params: Dict[str, Any] = {}
        if date_range:
            params["since"] = date_range.since.isoformat()
            params["until"] = date_range.until.isoformat()

        commits: List[Commit] = []
        try:
            async with aclosing(self._paginate(f"/repos/{owner}/{repo}/commits", params)) as pages:
                async for page in pages:
                    for record in page:
                        commits.append(_to_commit(record))
                        if len(commits) >= max_count:
                            logger.debug(f"Reached commit cap of {max_count}")
                            return commits
        except httpx.HTTPError as e:
            handle_github_error(e)

        logger.info(f"Fetched {len(commits)} commits from {owner}/{repo}")
        return commits

    async def fetch_merged_prs(
        self,
        owner: str,
        repo: str,
        date_range: Optional[DateRange] = None,
        max_count: int = 200,
    ) -> List[PullRequest]:
        """
        Lists merged pull requests, most recently updated first.

        With a date range, pagination stops at the first PR merged before
        `since`. This assumes GitHub returns PRs in descending order.
        """
        params = {"state": "closed", "sort": "updated", "direction": "desc"}

        prs: List[PullRequest] = []
        try:
            async with aclosing(self._paginate(f"/repos/{owner}/{repo}/pulls", params)) as pages:
                async for page in pages:
                    for record in page:
                        if not record.get("merged_at"):
                            continue

                        pr = _to_pull_request(record)
                        if date_range:
                            if pr.merged_at < date_range.since:
                                logger.debug(f"PR #{pr.number} predates the range, stopping")
                                return prs
                            if pr.merged_at > date_range.until:
                                continue

                        prs.append(pr)
                        if len(prs) >= max_count:
                            logger.debug(f"Reached pull request cap of {max_count}")
                            return prs
        except httpx.HTTPError as e:
            handle_github_error(e)

        logger.info(f"Fetched {len(prs)} merged pull requests from {owner}/{repo}")
        return prs

    async def fetch_commits_between_refs(self, owner: str, repo: str, base: str, head: str) -> List[Commit]:
        """Compares two refs (tag, branch or SHA) in a single request."""
        try:
            response = await self._get(f"/repos/{owner}/{repo}/compare/{base}...{head}")
        except httpx.HTTPError as e:
            handle_github_error(e)

        commits = [_to_commit(record, with_files=True) for record in response.json().get("commits", [])]
        logger.info(f"Fetched {len(commits)} commits between {base} and {head}")
        return commits
