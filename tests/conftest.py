"""Shared fixtures: every path lives under the test's tmp directory."""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from historian.config import Settings, load_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the user's real config, history and API key out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / ".local" / "state"))
    for key in list(os.environ):
        if key.startswith("HISTORIAN_") or key in {"HISTFILE", "ANTHROPIC_API_KEY"}:
            monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def data_dir(tmp_path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def history_file(tmp_path) -> Path:
    path = tmp_path / "shell" / ".bash_history"
    path.parent.mkdir()
    path.write_text("ls -la\ncd /srv/app\n", encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path, data_dir, history_file) -> Settings:
    return load_settings(
        tmp_path / "missing.conf",
        raw_history_path=data_dir / "raw_history.txt",
        summary_path=data_dir / "context_summary.md",
        session_log_dir=data_dir / "sessions",
        state_dir=tmp_path / "state",
        shell_activity_source=history_file,
        api_key_file=tmp_path / "api_key",
    )
