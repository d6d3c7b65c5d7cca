import importlib

import pytest

import config


@pytest.fixture()
def reload_config(monkeypatch):
    yield lambda: importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


def test_dev_tokens_are_off_unless_asked_for(monkeypatch, reload_config):
    monkeypatch.delenv('DEV_TOKENS_ENABLED', raising=False)
    reloaded = reload_config()
    assert reloaded.Config.DEV_TOKENS_ENABLED is False
    assert reloaded.DevConfig.DEV_TOKENS_ENABLED is True


def test_dev_tokens_env_override(monkeypatch, reload_config):
    monkeypatch.setenv('DEV_TOKENS_ENABLED', 'off')
    assert reload_config().DevConfig.DEV_TOKENS_ENABLED is False
    monkeypatch.setenv('DEV_TOKENS_ENABLED', 'yes')
    assert reload_config().Config.DEV_TOKENS_ENABLED is True
