import pytest

from config import DEFAULT_GROUP_PREFIX, load_config, missing_variables
from errors import ConfigurationError
from validate_config import mask, validate_config

OPTIONAL_VARS = ["SYNC_GROUP_PREFIX", "SYNC_DRY_RUN", "SYNC_ADD_BATCH_SIZE", "SYNC_PAGE_SIZE", "LOG_LEVEL"]


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("AZURE_TENANT_ID", "tenant")
    monkeypatch.setenv("AZURE_CLIENT_ID", "client")
    monkeypatch.setenv("AZURE_CLIENT_SECRET", "super-secret")
    for var in OPTIONAL_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults(env):
    config = load_config()

    assert config.group_prefix == DEFAULT_GROUP_PREFIX
    assert config.privileged_group == f"{DEFAULT_GROUP_PREFIX}privileged"
    assert config.nonprivileged_group == f"{DEFAULT_GROUP_PREFIX}nonprivileged"
    assert config.all_group == f"{DEFAULT_GROUP_PREFIX}all"
    assert config.dry_run is False
    assert config.add_batch_size == 20
    assert config.page_size == 999


def test_overrides(env):
    env.setenv("SYNC_GROUP_PREFIX", "Admins ")
    env.setenv("SYNC_DRY_RUN", "True")
    env.setenv("SYNC_ADD_BATCH_SIZE", "5")
    env.setenv("LOG_LEVEL", "debug")

    config = load_config()

    assert config.all_group == "Admins all"
    assert config.dry_run is True
    assert config.add_batch_size == 5
    assert config.log_level == "DEBUG"


def test_missing_required_variables(env):
    env.delenv("AZURE_CLIENT_SECRET")

    assert missing_variables() == ["AZURE_CLIENT_SECRET"]
    with pytest.raises(ConfigurationError):
        load_config()


@pytest.mark.parametrize("value", ["21", "0", "twenty"])
def test_batch_size_must_fit_graph_limit(env, value):
    env.setenv("SYNC_ADD_BATCH_SIZE", value)

    with pytest.raises(ConfigurationError):
        load_config()


def test_blank_prefix_is_rejected(env):
    env.setenv("SYNC_GROUP_PREFIX", "  ")

    with pytest.raises(ConfigurationError):
        load_config()


def test_validate_config_reports_missing(env, capsys):
    env.delenv("AZURE_TENANT_ID")

    assert validate_config() is False
    assert "AZURE_TENANT_ID" in capsys.readouterr().out


def test_validate_config_accepts_complete_env(env):
    assert validate_config() is True


def test_mask_keeps_last_four():
    assert mask("super-secret") == "********cret"
    assert mask("abc") == "***"
    assert mask("") == ""
