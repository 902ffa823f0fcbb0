"""Shared fixtures and helpers for slackthread tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from slackthread.config import Config
from slackthread.tools import ToolRegistry


@pytest.fixture
def config():
    return Config(slack_bot_token="xoxb-test")


def mock_client():
    client = AsyncMock()
    client.users_info.return_value = {
        "ok": True,
        "user": {"real_name": "Alice Example", "name": "alice"},
    }
    client.conversations_replies.return_value = {"ok": True, "messages": []}
    client.conversations_history.return_value = {"ok": True, "messages": []}
    client.conversations_info.return_value = {"ok": True, "channel": {"name": "general"}}
    client.chat_postMessage.return_value = {"ok": True, "ts": "1700000000.000100"}
    return client


@pytest.fixture
def client():
    return mock_client()


@pytest.fixture
def registry(client):
    async def _get_client():
        return client

    return ToolRegistry(_get_client)


def make_message(user: str = "U1", text: str = "hello", ts: str = "1609459200.123456", **kwargs) -> dict:
    """Helper to build a conversations.* message payload."""
    return {"user": user, "text": text, "ts": ts, **kwargs}


def slack_api_error(error: str = "channel_not_found"):
    """Build a SlackApiError like the SDK raises for ``ok: false`` responses."""
    response = MagicMock()
    response.get.side_effect = lambda key, default=None: {"ok": False, "error": error}.get(key, default)
    response.__getitem__.side_effect = lambda key: {"ok": False, "error": error}[key]
    return SlackApiError(f"The request to the Slack API failed. ({error})", response)
