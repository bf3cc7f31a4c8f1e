from typing import Callable

from core.contracts.models import PreparedReport, RepoInfo
from core.contracts.report import Progress, Report
from core.services import Services
from utils.logger import logger


def _ignore_progress(message: str) -> None:
    pass


class ReportPipeline:
    """
    The main pipeline for producing a report.
    It gathers history through the GitHub client, then streams the LLM's answer.
    """

    def __init__(self, services: Services):
        self.services = services

    async def prepare(self, report: Report, repo: RepoInfo, progress: Progress = _ignore_progress) -> PreparedReport:
        """
        Fetches the report's history and renders its prompt.

        The Anthropic key is checked first so a missing key fails before any
        GitHub request is made.
        """
        self.services.streamer()
        github = self.services.github()

        logger.info(f"Preparing {type(report).__name__} for {repo.full_name}")
        prepared = await report.prepare(github, repo, progress)
        if prepared.prompt is None:
            logger.info(f"Nothing to report: {prepared.empty_message}")
        else:
            logger.debug(f"Generated prompt for LLM:\n{prepared.prompt}")
        return prepared

    async def stream(self, prepared: PreparedReport, sink: Callable[[str], None]) -> None:
        """
        Forwards each fragment of the answer to `sink` as it arrives.
        """
        if prepared.prompt is None:
            return

        streamer = self.services.streamer()
        fragments = 0
        async for text in streamer.stream(prepared.prompt):
            sink(text)
            fragments += 1
        sink("\n")
        logger.info(f"Streamed {fragments} fragments")
