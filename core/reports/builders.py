from datetime import datetime
from typing import List, Optional, Tuple

from config.models import ReportConfig
from core.contracts.models import Commit, DateRange, PreparedReport, PullRequest, RepoInfo
from core.contracts.report import Progress, Report
from core.formatter.prompt_renderer import PromptRenderer
from core.github.client import GitHubClient
from core.registry import report_registry
from core.reports.changelog import correlate_pull_requests
from core.reports.contributors import group_by_contributor
from core.reports.dates import Count, calculate_date_range
from utils.format import format_date_range
from utils.logger import logger

NO_ACTIVITY = "No activity found in this time period."


class _HistoryReport(Report):
    """Shared plumbing for reports built from commits and merged PRs in a date window."""

    def __init__(self, config: ReportConfig, renderer: PromptRenderer, date_range: Optional[DateRange]):
        self.config = config
        self.renderer = renderer
        self.date_range = date_range

    def _period(self) -> str:
        if self.date_range is None:
            return "all time"
        return format_date_range(self.date_range.since, self.date_range.until)

    def _window(self) -> dict:
        if self.date_range is None:
            return {"since": None, "until": None}
        return {"since": self.date_range.since, "until": self.date_range.until}

    async def _fetch_history(
        self, github: GitHubClient, repo: RepoInfo, progress: Progress
    ) -> Tuple[List[Commit], List[PullRequest]]:
        progress("Fetching commits...")
        commits = await github.fetch_commits(repo.owner, repo.repo, self.date_range, self.config.max_commits)
        progress(f"Fetched {len(commits)} commits. Fetching pull requests...")
        prs = await github.fetch_merged_prs(repo.owner, repo.repo, self.date_range, self.config.max_prs)
        logger.info(f"History for {repo.full_name}: {len(commits)} commits, {len(prs)} pull requests")
        return commits, prs


@report_registry.register("summary")
class SummaryReport(_HistoryReport):
    """Narrative summary of recent activity."""

    def __init__(
        self,
        config: ReportConfig,
        renderer: PromptRenderer,
        weeks: Count = None,
        months: Count = None,
        all_time: bool = False,
        now: Optional[datetime] = None,
    ):
        date_range = calculate_date_range(
            weeks, months, default_weeks=config.summary_weeks, all_time=all_time, now=now
        )
        super().__init__(config, renderer, date_range)

    def heading(self, repo: RepoInfo) -> str:
        return f"Summary for {repo.full_name} ({self._period()})"

    async def prepare(self, github: GitHubClient, repo: RepoInfo, progress: Progress) -> PreparedReport:
        commits, prs = await self._fetch_history(github, repo, progress)
        if not commits and not prs:
            return PreparedReport(empty_message=NO_ACTIVITY)

        prompt = self.renderer.render("summary.j2", repo=repo, commits=commits, prs=prs, **self._window())
        return PreparedReport(prompt=prompt, commit_count=len(commits), pr_count=len(prs))


@report_registry.register("contributors")
class ContributorsReport(_HistoryReport):
    """Per-contributor focus areas."""

    def __init__(
        self,
        config: ReportConfig,
        renderer: PromptRenderer,
        weeks: Count = None,
        months: Count = None,
        now: Optional[datetime] = None,
    ):
        date_range = calculate_date_range(weeks, months, default_weeks=config.contributors_weeks, now=now)
        super().__init__(config, renderer, date_range)

    def heading(self, repo: RepoInfo) -> str:
        return f"Contributors for {repo.full_name} ({self._period()})"

    async def prepare(self, github: GitHubClient, repo: RepoInfo, progress: Progress) -> PreparedReport:
        commits, prs = await self._fetch_history(github, repo, progress)
        if not commits and not prs:
            return PreparedReport(empty_message=NO_ACTIVITY)

        contributors = group_by_contributor(commits, prs)
        progress(f"Found {len(contributors)} contributors")

        prompt = self.renderer.render(
            "contributors.j2", repo=repo, contributors=contributors, **self._window()
        )
        return PreparedReport(prompt=prompt, commit_count=len(commits), pr_count=len(prs))


@report_registry.register("ask")
class AskReport(_HistoryReport):
    """Answers a free-form question from the last few months of history."""

    def __init__(
        self,
        config: ReportConfig,
        renderer: PromptRenderer,
        question: str,
        now: Optional[datetime] = None,
    ):
        date_range = calculate_date_range(months=config.ask_months, now=now)
        super().__init__(config, renderer, date_range)
        self.question = question

    def heading(self, repo: RepoInfo) -> str:
        return f"Question about {repo.full_name}"

    async def prepare(self, github: GitHubClient, repo: RepoInfo, progress: Progress) -> PreparedReport:
        commits, prs = await self._fetch_history(github, repo, progress)
        if not commits and not prs:
            return PreparedReport(empty_message="No history found to search.")

        prompt = self.renderer.render("ask.j2", repo=repo, commits=commits, prs=prs, question=self.question)
        return PreparedReport(prompt=prompt, commit_count=len(commits), pr_count=len(prs))


@report_registry.register("changelog")
class ChangelogReport(Report):
    """Changelog for the commits between two refs."""

    def __init__(
        self,
        config: ReportConfig,
        renderer: PromptRenderer,
        from_ref: str,
        to_ref: str = "HEAD",
        output_format: str = "pretty",
    ):
        self.config = config
        self.renderer = renderer
        self.from_ref = from_ref
        self.to_ref = to_ref or "HEAD"
        self.output_format = output_format

    def heading(self, repo: RepoInfo) -> str:
        return f"Changelog for {repo.full_name} ({self.from_ref} → {self.to_ref})"

    async def prepare(self, github: GitHubClient, repo: RepoInfo, progress: Progress) -> PreparedReport:
        progress("Fetching commits...")
        # An unknown ref is a 404 and surfaces as the usual "Repository not found" error.
        commits = await github.fetch_commits_between_refs(repo.owner, repo.repo, self.from_ref, self.to_ref)

        if not commits:
            return PreparedReport(empty_message="No commits found between these references.")

        progress(f"Fetched {len(commits)} commits. Fetching related pull requests...")
        recent_prs = await github.fetch_merged_prs(repo.owner, repo.repo, None, self.config.changelog_max_prs)
        related_prs = correlate_pull_requests(commits, recent_prs)
        logger.info(f"Matched {len(related_prs)} of {len(recent_prs)} pull requests by merge date")

        prompt = self.renderer.render(
            "changelog.j2",
            repo=repo,
            from_ref=self.from_ref,
            to_ref=self.to_ref,
            commits=commits,
            prs=related_prs,
            output_format=self.output_format,
        )
        return PreparedReport(prompt=prompt, commit_count=len(commits), pr_count=len(related_prs))
