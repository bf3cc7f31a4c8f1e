import os
import stat

import yaml

from config.credentials import CredentialName, CredentialStore


def test_get_returns_none_when_nothing_stored(store):
    assert store.get(CredentialName.GITHUB_TOKEN) is None
    assert not store.is_github_authenticated()
    assert not store.is_anthropic_configured()


def test_set_persists_value(store):
    store.set(CredentialName.ANTHROPIC_KEY, "sk-ant-123")

    reopened = CredentialStore(store.path)
    assert reopened.get(CredentialName.ANTHROPIC_KEY) == "sk-ant-123"
    assert reopened.is_anthropic_configured()
    with open(store.path) as f:
        assert yaml.safe_load(f) == {"anthropic_key": "sk-ant-123"}


def test_set_overwrites_only_named_value(store):
    store.set(CredentialName.GITHUB_TOKEN, "gho_old")
    store.set(CredentialName.ANTHROPIC_KEY, "sk-ant-1")
    store.set(CredentialName.GITHUB_TOKEN, "gho_new")

    assert store.get(CredentialName.GITHUB_TOKEN) == "gho_new"
    assert store.get(CredentialName.ANTHROPIC_KEY) == "sk-ant-1"


def test_credentials_file_is_private(store):
    store.set(CredentialName.GITHUB_TOKEN, "gho_x")
    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode == 0o600


def test_environment_shadows_stored_value(store, monkeypatch):
    store.set(CredentialName.GITHUB_TOKEN, "Y")
    monkeypatch.setenv("GITHUB_TOKEN", "X")

    assert store.get(CredentialName.GITHUB_TOKEN) == "X"
    # Storage is untouched by the override.
    with open(store.path) as f:
        assert yaml.safe_load(f)["github_token"] == "Y"


def test_set_does_not_change_environment_precedence(store, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
    store.set(CredentialName.ANTHROPIC_KEY, "sk-ant-file")

    assert store.get(CredentialName.ANTHROPIC_KEY) == "sk-ant-env"
    monkeypatch.delenv("ANTHROPIC_API_KEY")
    assert store.get(CredentialName.ANTHROPIC_KEY) == "sk-ant-file"


def test_empty_environment_variable_falls_back_to_file(store, monkeypatch):
    store.set(CredentialName.GITHUB_TOKEN, "gho_file")
    monkeypatch.setenv("GITHUB_TOKEN", "")
    assert store.get(CredentialName.GITHUB_TOKEN) == "gho_file"


def test_clear_removes_all_values(store):
    store.set(CredentialName.GITHUB_TOKEN, "gho_x")
    store.set(CredentialName.ANTHROPIC_KEY, "sk-ant-x")

    store.clear()

    assert not store.path.exists()
    assert store.get(CredentialName.GITHUB_TOKEN) is None
    assert store.get(CredentialName.ANTHROPIC_KEY) is None
    store.clear()  # clearing twice is harmless


def test_corrupt_file_is_treated_as_empty(store):
    store.path.write_text("github_token: [unclosed")
    assert store.get(CredentialName.GITHUB_TOKEN) is None


def test_env_var_names():
    assert CredentialName.GITHUB_TOKEN.env_var == "GITHUB_TOKEN"
    assert CredentialName.ANTHROPIC_KEY.env_var == "ANTHROPIC_API_KEY"


def test_values_are_stored_literally(store, monkeypatch):
    monkeypatch.setenv("SOME_SECRET", "expanded")
    store.set(CredentialName.ANTHROPIC_KEY, "sk-ant-${SOME_SECRET}")
    store.set(CredentialName.GITHUB_TOKEN, "${NOT_SET_ANYWHERE}")

    assert store.get(CredentialName.ANTHROPIC_KEY) == "sk-ant-${SOME_SECRET}"
    assert store.get(CredentialName.GITHUB_TOKEN) == "${NOT_SET_ANYWHERE}"
