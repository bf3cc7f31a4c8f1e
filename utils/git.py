import re
import subprocess
from typing import List, Optional, Tuple

from core.contracts.models import RepoInfo
from utils.errors import GitError

SSH_URL = re.compile(r"^git@github\.com:([^/]+)/(.+?)(\.git)?$")
HTTPS_URL = re.compile(r"^https://github\.com/([^/]+)/(.+?)(\.git)?$")


def _git(*args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        check=True,
        encoding="utf-8",
    )
    return result.stdout.strip()


def is_git_repository() -> bool:
    """Checks if the current directory is a Git repository."""
    try:
        return _git("rev-parse", "--is-inside-work-tree") == "true"
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def get_current_branch_name() -> str:
    """
    Gets the current Git branch name.

    Raises:
        GitError: If the git command fails.
    """
    try:
        return _git("rev-parse", "--abbrev-ref", "HEAD")
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")
    except subprocess.CalledProcessError as e:
        raise GitError(f"Failed to get current branch name: {e.stderr}")


def get_remote_url() -> Optional[str]:
    """
    Returns the URL of `origin`, or of the first remote when there is no origin.
    """
    try:
        remotes: List[str] = [r for r in _git("remote").splitlines() if r]
        if not remotes:
            return None
        remote = "origin" if "origin" in remotes else remotes[0]
        return _git("remote", "get-url", remote)
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def parse_github_url(url: str) -> Optional[Tuple[str, str]]:
    """
    Extracts (owner, repo) from an SSH or HTTPS GitHub remote URL.
    """
    for pattern in (SSH_URL, HTTPS_URL):
        match = pattern.match(url)
        if match:
            return match.group(1), match.group(2)
    return None


def ensure_github_remote() -> RepoInfo:
    """
    Identifies the GitHub repository behind the current working directory.

    Raises:
        GitError: If this is not a git repository or has no GitHub remote.
    """
    if not is_git_repository():
        raise GitError("Not in a git repository. Run this from inside a git project.")

    remote_url = get_remote_url()
    if not remote_url:
        raise GitError("No remote found. This tool works with GitHub repositories.")

    parsed = parse_github_url(remote_url)
    if not parsed:
        raise GitError("No GitHub remote found. This tool works with GitHub repositories.")

    owner, repo = parsed
    return RepoInfo(owner=owner, repo=repo, default_branch=get_current_branch_name())
