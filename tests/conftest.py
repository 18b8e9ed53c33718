from __future__ import annotations

import os

import pytest

from postageapp.config import Configuration, reset_configuration


@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("POSTAGEAPP_"):
            monkeypatch.delenv(key)
    reset_configuration()
    yield
    reset_configuration()


@pytest.fixture()
def config() -> Configuration:
    return Configuration(
        api_key="test-api-key",
        account_api_key="test-account-key",
        postback_secret="postback-secret",
        framework="Python test",
        environment="test",
    )
