from __future__ import annotations

import json
from pathlib import Path

import pytest

from postageapp.__main__ import main


def test_config_command_masks_secrets(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("POSTAGEAPP_API_KEY", "abcdef123456")
    monkeypatch.setenv("POSTAGEAPP_HOST", "api.example.test")

    assert main(["config"]) == 0

    settings = json.loads(capsys.readouterr().out)
    assert settings["api_key"] == "abcd..."
    assert settings["host"] == "api.example.test"


def test_config_command_reads_credentials_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"postageapp": {"api_key": "file-key", "environment": "staging"}}))

    assert main(["--credentials", str(path), "config", "--reveal"]) == 0

    settings = json.loads(capsys.readouterr().out)
    assert settings["api_key"] == "file-key"
    assert settings["environment"] == "staging"


def test_check_without_api_key_reports_configuration_error() -> None:
    assert main(["check"]) == 2


def test_serve_without_secret_reports_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POSTAGEAPP_API_KEY", "key")

    assert main(["serve"]) == 2
