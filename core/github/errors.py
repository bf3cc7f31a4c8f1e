import json
from datetime import datetime
from typing import NoReturn

import httpx

from utils.errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RateLimitError,
)
from utils.logger import logger


def _error_message(response: httpx.Response) -> str:
    """Extracts GitHub's `message` field, falling back to the raw body."""
    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text or "Unknown error"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text or "Unknown error"


def format_reset_time(reset_header: str) -> str:
    """Renders an `x-ratelimit-reset` epoch value as a local wall-clock time."""
    return datetime.fromtimestamp(int(reset_header)).strftime("%H:%M:%S")


def handle_github_error(error: Exception) -> NoReturn:
    """
    Translates a GitHub API failure into a domain error and raises it.

    Only HTTP status errors are translated; anything else (network failures,
    unexpected statuses) is re-raised unmodified.
    """
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        status = response.status_code
        message = _error_message(response)
        logger.debug(f"GitHub API returned {status}: {message}")

        if status == 401:
            raise AuthenticationError(
                'GitHub authentication failed. Run "git-sense auth" to re-authenticate.'
            ) from error

        if status == 403:
            if "rate limit" in message:
                reset_header = response.headers.get("x-ratelimit-reset")
                if reset_header and reset_header.isdigit():
                    raise RateLimitError(
                        f"GitHub API rate limit reached. Resets at {format_reset_time(reset_header)}. Try again later."
                    ) from error
                raise RateLimitError("GitHub API rate limit reached. Try again later.") from error
            raise AuthorizationError(f"GitHub API access denied: {message}") from error

        if status == 404:
            raise NotFoundError(
                "Repository not found. Check that you have access to this repository."
            ) from error

    raise error
