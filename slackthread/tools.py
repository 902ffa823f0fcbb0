"""Tool registry shared by every hosting surface.

Each tool is declared once here (name, description, argument model,
handler).  The MCP and HTTP servers are thin adapters over
:meth:`ToolRegistry.list_operations` and :meth:`ToolRegistry.invoke`.
"""

import json
import logging
from dataclasses import dataclass
from typing import Annotated, Awaitable, Callable

from mcp.types import ToolAnnotations
from pydantic import BaseModel, Field, ValidationError
from slack_sdk.web.async_client import AsyncWebClient

from . import reader
from .errors import NotSlackUrlError, SlackThreadError, UnresolvableUrlError
from .urls import is_slack_url, parse_slack_url

logger = logging.getLogger(__name__)

MAX_LIMIT = 1000

ClientGetter = Callable[[], Awaitable[AsyncWebClient]]

# Shared annotation presets.
SLACK_READ_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=True,
)
SLACK_WRITE_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=False,
    destructiveHint=False,
    idempotentHint=False,
    openWorldHint=True,
)
LOCAL_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=False,
)


# Argument types shared by the registry models and the MCP tool signatures.
ThreadUrl = Annotated[str, Field(description="The Slack message or thread URL")]
IncludeReactions = Annotated[bool, Field(description="Include reaction information")]
Limit = Annotated[
    int | None,
    Field(ge=1, le=MAX_LIMIT, description="Maximum number of messages to return"),
]
ChannelId = Annotated[str, Field(description="The Slack channel ID (e.g., C1234567890)")]
AnyUrl = Annotated[str, Field(description="The Slack URL to parse")]
PostChannelId = Annotated[
    str, Field(description="The Slack channel ID to post to (e.g., C1234567890)")
]
MessageText = Annotated[str, Field(description="The message text to post (can include URLs)")]
ThreadTs = Annotated[
    str | None, Field(description="Optional thread timestamp to reply in a thread")
]


class ReadThreadArgs(BaseModel):
    url: ThreadUrl
    include_reactions: IncludeReactions = False
    limit: Limit = None


class ChannelInfoArgs(BaseModel):
    channel_id: ChannelId


class ParseUrlArgs(BaseModel):
    url: AnyUrl


class PostMessageArgs(BaseModel):
    channel_id: PostChannelId
    text: MessageText
    thread_ts: ThreadTs = None


@dataclass(frozen=True)
class ToolResult:
    """Text returned to the caller; ``is_error`` marks a failed call."""

    text: str
    is_error: bool = False


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[BaseModel]
    handler: Callable[["ToolRegistry", BaseModel], Awaitable[str]]
    annotations: ToolAnnotations


async def _read_thread(registry: "ToolRegistry", args: ReadThreadArgs) -> str:
    client = await registry.get_client()
    return await reader.read_thread(
        client,
        args.url,
        include_reactions=args.include_reactions,
        limit=args.limit or registry.default_limit,
    )


async def _get_channel_info(registry: "ToolRegistry", args: ChannelInfoArgs) -> str:
    client = await registry.get_client()
    return await reader.get_channel_info(client, args.channel_id)


async def _parse_url(registry: "ToolRegistry", args: ParseUrlArgs) -> str:
    if not is_slack_url(args.url):
        raise NotSlackUrlError(args.url)
    info = parse_slack_url(args.url)
    if info is None:
        raise UnresolvableUrlError(args.url, "Could not parse URL")
    return json.dumps(info.to_dict(), indent=2)


async def _post_message(registry: "ToolRegistry", args: PostMessageArgs) -> str:
    client = await registry.get_client()
    return await reader.post_message(client, args.channel_id, args.text, args.thread_ts)


TOOLS: list[ToolSpec] = [
    ToolSpec(
        name="read_slack_thread",
        description=(
            "Read a full Slack thread given a Slack URL. Returns the conversation "
            "with sender names, timestamps, and message content."
        ),
        args_model=ReadThreadArgs,
        handler=_read_thread,
        annotations=SLACK_READ_ANNOTATIONS,
    ),
    ToolSpec(
        name="get_channel_info",
        description=(
            "Get information about a Slack channel including name, topic, "
            "purpose, and member count."
        ),
        args_model=ChannelInfoArgs,
        handler=_get_channel_info,
        annotations=SLACK_READ_ANNOTATIONS,
    ),
    ToolSpec(
        name="parse_slack_url",
        description=(
            "Parse a Slack URL to extract channel ID and message timestamps. "
            "No API call made."
        ),
        args_model=ParseUrlArgs,
        handler=_parse_url,
        annotations=LOCAL_ANNOTATIONS,
    ),
    ToolSpec(
        name="post_message",
        description=(
            "Post a message to a Slack channel. Can include links which will be unfurled."
        ),
        args_model=PostMessageArgs,
        handler=_post_message,
        annotations=SLACK_WRITE_ANNOTATIONS,
    ),
]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ToolRegistry:
    """Lists and invokes the slackthread tools.

    *get_client* is awaited lazily, only by tools that talk to Slack, so
    ``parse_slack_url`` works without a token.
    """

    def __init__(
        self,
        get_client: ClientGetter,
        tools: list[ToolSpec] | None = None,
        default_limit: int = reader.DEFAULT_LIMIT,
    ) -> None:
        self.get_client = get_client
        self.default_limit = default_limit
        self._tools = {t.name: t for t in (tools if tools is not None else TOOLS)}

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def list_operations(self) -> list[dict]:
        return [
            {
                "name": spec.name,
                "description": spec.description,
                "inputSchema": spec.args_model.model_json_schema(),
                "annotations": spec.annotations.model_dump(exclude_none=True),
            }
            for spec in self._tools.values()
        ]

    async def invoke(self, name: str, args: dict | None = None) -> ToolResult:
        """Validate *args* and run tool *name*.

        Unknown tools, bad arguments and :class:`SlackThreadError` failures
        come back as error results rather than exceptions.
        """
        spec = self._tools.get(name)
        if spec is None:
            return ToolResult(f"Unknown tool: {name}", is_error=True)

        try:
            parsed = spec.args_model.model_validate(args or {})
        except ValidationError as exc:
            return ToolResult(
                f"Error: invalid arguments for {name}: {_format_validation_error(exc)}",
                is_error=True,
            )

        try:
            text = await spec.handler(self, parsed)
        except SlackThreadError as exc:
            logger.info("Tool %s failed: %s", name, exc)
            return ToolResult(f"Error: {exc}", is_error=True)

        return ToolResult(text)
