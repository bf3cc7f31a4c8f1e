from typing import Optional

from config.credentials import CredentialName, CredentialStore
from config.models import Config
from core.github.client import GitHubClient
from core.llm.claude import ClaudeStreamer
from utils.logger import logger


class Services:
    """
    Holds the API clients for one CLI invocation.

    Each client is built on first use and then reused; callers receive them
    explicitly instead of reaching for module-level globals.
    """

    def __init__(self, config: Config, store: CredentialStore):
        self.config = config
        self.store = store
        self._github: Optional[GitHubClient] = None
        self._streamer: Optional[ClaudeStreamer] = None

    def github(self) -> GitHubClient:
        if self._github is None:
            # GitHubClient raises AuthenticationError when no token is stored.
            self._github = GitHubClient(self.store.get(CredentialName.GITHUB_TOKEN), self.config.github)
            logger.debug("Created GitHub client")
        return self._github

    def streamer(self) -> ClaudeStreamer:
        if self._streamer is None:
            self._streamer = ClaudeStreamer(self.store.get(CredentialName.ANTHROPIC_KEY), self.config.model)
            logger.debug("Created Anthropic client")
        return self._streamer

    async def aclose(self) -> None:
        if self._github is not None:
            await self._github.aclose()
        if self._streamer is not None:
            await self._streamer.aclose()
