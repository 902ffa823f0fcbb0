"""Tests for slackthread.app — CLI entrypoint and logging setup."""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from slackthread import app as app_mod
from slackthread.config import Config


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["slackthread", *argv])
    app_mod.main()


class TestParseCommand:
    def test_prints_json(self, monkeypatch, capsys):
        run_cli(monkeypatch, "parse", "https://acme.slack.com/archives/C123/p1609459200123456")
        assert json.loads(capsys.readouterr().out) == {
            "workspace": "acme",
            "channelId": "C123",
            "messageTs": "1609459200.123456",
            "threadTs": "1609459200.123456",
        }

    def test_not_slack(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "parse", "https://example.com/archives/C1")
        assert exc_info.value.code == 1
        assert "Invalid Slack URL" in capsys.readouterr().err

    def test_unresolvable(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "parse", "https://acme.slack.com/archives/")
        assert exc_info.value.code == 1
        assert "Could not parse URL" in capsys.readouterr().err


class TestHelp:
    def test_no_command_prints_help(self, monkeypatch, capsys):
        run_cli(monkeypatch)
        assert "Usage: slackthread <command>" in capsys.readouterr().out

    def test_bad_args_print_help_and_exit_2(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "bogus")
        assert exc_info.value.code == 2
        assert "Usage: slackthread <command>" in capsys.readouterr().out


class TestDispatch:
    def test_mcp(self, monkeypatch):
        with patch("slackthread.mcp_server.main") as mock_main:
            run_cli(monkeypatch, "mcp")
        mock_main.assert_called_once()

    def test_serve_uses_config_and_flags(self, monkeypatch):
        config = Config(slack_bot_token="xoxb-test", port=3000, thread_limit=20)
        with (
            patch.object(app_mod, "_load_config", return_value=config),
            patch.object(app_mod, "configure_logging"),
            patch("uvicorn.run") as mock_run,
        ):
            run_cli(monkeypatch, "serve", "--port", "9000")

        kwargs = mock_run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9000
        assert kwargs["log_level"] == "info"

    def test_serve_without_token_exits(self, monkeypatch, capsys):
        monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "serve")
        assert exc_info.value.code == 1
        assert "SLACK_BOT_TOKEN" in capsys.readouterr().err


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        yield
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers, root.level = saved_handlers, saved_level

    def test_sets_level_and_quiets_noisy_loggers(self):
        app_mod.configure_logging(Config(slack_bot_token="x", log_level="DEBUG"))
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("slack_sdk").level == logging.INFO

    def test_writes_dated_log_file(self, tmp_path):
        log_dir = tmp_path / "logs"
        app_mod.configure_logging(Config(slack_bot_token="x", log_dir=log_dir))
        logging.getLogger("slackthread.test").warning("hello file")
        files = list(log_dir.glob("slackthread-*.log"))
        assert len(files) == 1
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in files[0].read_text()
