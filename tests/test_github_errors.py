from datetime import datetime

import httpx
import pytest

from core.github.errors import handle_github_error
from utils.errors import AuthenticationError, AuthorizationError, NotFoundError, RateLimitError

from helpers import json_response


def status_error(status_code, message="boom", headers=None):
    response = json_response({"message": message}, status_code=status_code, headers=headers)
    return httpx.HTTPStatusError(message, request=response.request, response=response)


def test_401_is_authentication_error():
    with pytest.raises(AuthenticationError, match='Run "git-sense auth"'):
        handle_github_error(status_error(401, "Bad credentials"))


def test_403_rate_limit_with_reset_header():
    error = status_error(
        403,
        "API rate limit exceeded",
        headers={"x-ratelimit-reset": "1700000000"},
    )
    expected = datetime.fromtimestamp(1700000000).strftime("%H:%M:%S")

    with pytest.raises(RateLimitError) as exc_info:
        handle_github_error(error)

    assert expected in str(exc_info.value)
    assert str(exc_info.value).startswith("GitHub API rate limit reached. Resets at")


def test_403_rate_limit_without_header():
    with pytest.raises(RateLimitError, match="^GitHub API rate limit reached. Try again later.$"):
        handle_github_error(status_error(403, "API rate limit exceeded for 1.2.3.4."))


def test_403_other_is_authorization_error():
    with pytest.raises(AuthorizationError, match="GitHub API access denied: Resource not accessible by integration"):
        handle_github_error(status_error(403, "Resource not accessible by integration"))


def test_404_is_not_found():
    with pytest.raises(NotFoundError, match="Repository not found"):
        handle_github_error(status_error(404, "Not Found"))


def test_other_status_is_reraised_unmodified():
    error = status_error(500, "Server Error")
    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        handle_github_error(error)
    assert exc_info.value is error


def test_error_without_status_is_reraised_unmodified():
    error = httpx.ReadTimeout("timed out")
    with pytest.raises(httpx.ReadTimeout) as exc_info:
        handle_github_error(error)
    assert exc_info.value is error


def test_non_json_body_uses_text():
    response = httpx.Response(403, text="Forbidden by proxy", request=httpx.Request("GET", "https://api.github.com/"))
    error = httpx.HTTPStatusError("403", request=response.request, response=response)

    with pytest.raises(AuthorizationError, match="Forbidden by proxy"):
        handle_github_error(error)
