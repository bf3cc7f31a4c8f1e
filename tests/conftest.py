import pytest

from config.credentials import CredentialStore
from core.contracts.models import RepoInfo


@pytest.fixture(autouse=True)
def _isolate_credentials_env(monkeypatch):
    """Credentials in the developer's environment must not leak into tests."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


@pytest.fixture
def store(tmp_path):
    return CredentialStore(tmp_path / "credentials.yaml")


@pytest.fixture
def repo():
    return RepoInfo(owner="octo", repo="widgets", default_branch="main")
