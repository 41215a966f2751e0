"""Tests for settings loading from the config file, environment and overrides."""
from __future__ import annotations

from pathlib import Path

import pytest

from historian.config import ConfigError, load_settings, parse_config_file, resolve_api_key


class TestParseConfigFile:
    def test_missing_file_is_empty(self, tmp_path):
        assert parse_config_file(tmp_path / "nope") == {}

    def test_shell_style_values(self, tmp_path, isolated_env):
        config = tmp_path / "config"
        config.write_text(
            "# Terminal Session Historian\n"
            "\n"
            'RAW_HISTORY_PATH="$HOME/history/raw.txt"\n'
            "export CHECK_INTERVAL=30\n"
            "ADDITIONAL_LOG_DIRS='/var/log/app $HOME/agent-logs'\n"
            "LLM_SUMMARIZATION=true  # enable summaries\n",
            encoding="utf-8",
        )
        values = parse_config_file(config)
        assert values["RAW_HISTORY_PATH"] == f"{isolated_env}/history/raw.txt"
        assert values["CHECK_INTERVAL"] == "30"
        assert values["ADDITIONAL_LOG_DIRS"] == f"/var/log/app {isolated_env}/agent-logs"
        assert values["LLM_SUMMARIZATION"] == "true"

    def test_line_without_assignment_is_rejected(self, tmp_path):
        config = tmp_path / "config"
        config.write_text("JUST_A_WORD\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            parse_config_file(config)


class TestLoadSettings:
    def test_defaults(self, tmp_path, isolated_env):
        settings = load_settings(tmp_path / "absent")
        assert settings.max_raw_history_bytes == 100 * 1024 * 1024
        assert settings.min_pending_lines == 10
        assert settings.max_transmit_bytes == 50_000
        assert settings.recent_window_minutes == 60
        assert settings.llm_summarization is False
        assert settings.raw_history_path == isolated_env / ".local/share/terminal-historian/raw_history.txt"
        assert settings.cursor_path.name == "last_summarized_position"

    def test_precedence_file_env_override(self, tmp_path, monkeypatch):
        config = tmp_path / "config"
        config.write_text("CHECK_INTERVAL=30\nMIN_PENDING_LINES=5\nMAX_TRANSMIT_BYTES=1000\n", encoding="utf-8")
        monkeypatch.setenv("HISTORIAN_MIN_PENDING_LINES", "7")
        monkeypatch.setenv("HISTORIAN_MAX_TRANSMIT_BYTES", "2000")

        settings = load_settings(config, max_transmit_bytes=3000)

        assert settings.check_interval == 30
        assert settings.min_pending_lines == 7
        assert settings.max_transmit_bytes == 3000

    def test_rolling_summary_path_derived_from_summary_path(self, tmp_path):
        settings = load_settings(tmp_path / "absent", summary_path=tmp_path / "ctx.md")
        assert settings.resolved_rolling_summary_path == tmp_path / "ctx_rolling.md"

    def test_blank_session_dir_disables_session_logging(self, tmp_path):
        config = tmp_path / "config"
        config.write_text('SESSION_LOG_DIR=""\n', encoding="utf-8")
        settings = load_settings(config)
        assert settings.session_log_dir is None
        assert not settings.session_logging_enabled

    def test_additional_dirs_split_on_whitespace(self, tmp_path):
        config = tmp_path / "config"
        config.write_text('ADDITIONAL_LOG_DIRS="/a /b"\n', encoding="utf-8")
        settings = load_settings(config)
        assert settings.additional_log_dirs == [Path("/a"), Path("/b")]

    def test_invalid_value_is_config_error(self, tmp_path):
        config = tmp_path / "config"
        config.write_text("CHECK_INTERVAL=soon\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(config)

    def test_command_backend_requires_command(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "absent", llm_summarization=True, llm_backend="command")

    def test_zero_max_bytes_disables_rotation(self, tmp_path):
        settings = load_settings(tmp_path / "absent", max_raw_history_bytes=0)
        assert not settings.rotation_enabled


class TestResolveApiKey:
    def test_file_takes_precedence(self, tmp_path, monkeypatch):
        key_file = tmp_path / "api_key"
        key_file.write_text("sk-file\n", encoding="utf-8")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        settings = load_settings(tmp_path / "absent", api_key_file=key_file)
        assert resolve_api_key(settings) == "sk-file"

    def test_falls_back_to_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        settings = load_settings(tmp_path / "absent", api_key_file=tmp_path / "missing")
        assert resolve_api_key(settings) == "sk-env"

    def test_none_when_unset(self, tmp_path):
        settings = load_settings(tmp_path / "absent", api_key_file=tmp_path / "missing")
        assert resolve_api_key(settings) is None
