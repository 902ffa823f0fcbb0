"""slackthread MCP server — exposes Slack link, thread and channel tools over stdio."""

import logging
import sys

from mcp.server.fastmcp import FastMCP

from .config import Config
from .reader import DEFAULT_LIMIT
from .tools import (
    TOOLS,
    AnyUrl,
    ChannelId,
    IncludeReactions,
    Limit,
    MessageText,
    PostChannelId,
    ThreadTs,
    ThreadUrl,
    ToolRegistry,
)

# stdout carries JSON-RPC; logs go to stderr.
logging.basicConfig(stream=sys.stderr, level=logging.WARNING)
logger = logging.getLogger(__name__)

mcp = FastMCP("slackthread")

_SPECS = {spec.name: spec for spec in TOOLS}

# Lazy-loaded singletons (avoid import-time side effects).
_config: Config | None = None
_client = None  # AsyncWebClient
_registry: ToolRegistry | None = None


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


async def _get_client():
    global _client
    if _client is None:
        from slack_sdk.web.async_client import AsyncWebClient

        _client = AsyncWebClient(token=_get_config().slack_bot_token)
    return _client


def _get_registry() -> ToolRegistry:
    global _registry
    if _registry is None:
        try:
            default_limit = _get_config().thread_limit
        except ValueError:
            # parse_slack_url still works without a token.
            default_limit = DEFAULT_LIMIT
        _registry = ToolRegistry(_get_client, default_limit=default_limit)
    return _registry


async def _call(name: str, **args) -> str:
    result = await _get_registry().invoke(name, args)
    return result.text


def _registered(name: str):
    """``mcp.tool`` decorator carrying the registry's description and annotations."""
    spec = _SPECS[name]
    return mcp.tool(name=spec.name, description=spec.description, annotations=spec.annotations)


@_registered("read_slack_thread")
async def read_slack_thread(
    url: ThreadUrl,
    include_reactions: IncludeReactions = False,
    limit: Limit = None,
) -> str:
    return await _call(
        "read_slack_thread", url=url, include_reactions=include_reactions, limit=limit
    )


@_registered("get_channel_info")
async def get_channel_info(channel_id: ChannelId) -> str:
    return await _call("get_channel_info", channel_id=channel_id)


@_registered("parse_slack_url")
async def parse_slack_url(url: AnyUrl) -> str:
    return await _call("parse_slack_url", url=url)


@_registered("post_message")
async def post_message(
    channel_id: PostChannelId,
    text: MessageText,
    thread_ts: ThreadTs = None,
) -> str:
    return await _call("post_message", channel_id=channel_id, text=text, thread_ts=thread_ts)


def main() -> None:
    """Entry point for the slackthread-mcp console script."""
    try:
        _get_config()
    except ValueError as exc:
        logger.error("slackthread MCP server cannot start: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
