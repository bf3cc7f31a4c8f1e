from typing import Callable, Protocol

from core.contracts.models import PreparedReport, RepoInfo
from core.github.client import GitHubClient

Progress = Callable[[str], None]


class Report(Protocol):
    """A protocol for report types that turn repository history into a prompt."""

    def heading(self, repo: RepoInfo) -> str:
        """A one-line title shown before the report is generated."""
        ...

    async def prepare(self, github: GitHubClient, repo: RepoInfo, progress: Progress) -> PreparedReport:
        """Fetches the history the report needs and renders its prompt."""
        ...
