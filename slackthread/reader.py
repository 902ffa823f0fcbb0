"""Fetch Slack threads, messages and channel details and render them as text.

Every function takes the ``AsyncWebClient`` explicitly.  The user-name
cache used while rendering belongs to one ``read_thread`` call and is
passed down as a plain dict, so concurrent requests never share it.
"""

import logging
from datetime import datetime, timezone

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from .errors import SlackRequestError, UnresolvableUrlError
from .urls import LinkInfo, resolve_or_raise

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def _iso_timestamp(ts: str | None) -> str:
    """Render a Slack ``ts`` as an ISO-8601 UTC string ("" if unusable)."""
    if not ts:
        return ""
    try:
        dt = datetime.fromtimestamp(float(ts), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return ""
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _request_error(exc: SlackApiError, default: str) -> SlackRequestError:
    code = exc.response.get("error") if exc.response is not None else None
    return SlackRequestError(code or default, code=code)


async def resolve_user_name(
    client: AsyncWebClient, user_id: str, user_cache: dict[str, str]
) -> str:
    """Return a display name for *user_id*, consulting *user_cache* first.

    Prefers ``real_name`` then ``name``.  Lookup failures fall back to the
    raw ID, which is cached too so the same user is not retried.
    """
    if user_id in user_cache:
        return user_cache[user_id]
    try:
        resp = await client.users_info(user=user_id)
        user = resp.get("user") or {}
        name = user.get("real_name") or user.get("name") or user_id
    except SlackApiError as exc:
        logger.debug("users.info failed for %s: %s", user_id, exc)
        name = user_id
    user_cache[user_id] = name
    return name


async def format_message(
    client: AsyncWebClient,
    msg: dict,
    include_reactions: bool,
    user_cache: dict[str, str],
) -> str:
    user_id = msg.get("user")
    user_name = await resolve_user_name(client, user_id, user_cache) if user_id else "unknown"

    formatted = (
        f"**{user_name}** ({_iso_timestamp(msg.get('ts'))}):\n"
        f"{msg.get('text') or '(no text)'}\n"
    )

    reactions = msg.get("reactions") or []
    if include_reactions and reactions:
        reaction_str = " ".join(
            f":{r.get('name')}: ({r.get('count')})" for r in reactions
        )
        formatted += f"Reactions: {reaction_str}\n"

    return formatted


async def read_thread(
    client: AsyncWebClient,
    url: str,
    include_reactions: bool = False,
    limit: int = DEFAULT_LIMIT,
) -> str:
    """Fetch the thread or message a Slack link points at and render it."""
    info = resolve_or_raise(url)
    if info.is_channel_only:
        raise UnresolvableUrlError(url, "Link points at a channel, not a message")
    return await read_link(client, info, include_reactions=include_reactions, limit=limit)


async def read_link(
    client: AsyncWebClient,
    info: LinkInfo,
    include_reactions: bool = False,
    limit: int = DEFAULT_LIMIT,
) -> str:
    """Render the thread or single message identified by *info*.

    A ``thread_ts`` is read with ``conversations.replies``.  Without one,
    the message at ``message_ts`` is fetched from ``conversations.history``;
    resolved links always carry ``thread_ts``, so that path serves
    callers holding a ``LinkInfo`` built some other way.
    """
    if info.is_channel_only:
        raise UnresolvableUrlError(info.channel_id, "Link points at a channel, not a message")

    user_cache: dict[str, str] = {}

    if info.thread_ts:
        try:
            resp = await client.conversations_replies(
                channel=info.channel_id, ts=info.thread_ts, limit=limit
            )
        except SlackApiError as exc:
            raise _request_error(exc, "Unknown error") from exc

        messages = resp.get("messages")
        if not resp.get("ok", True) or messages is None:
            raise SlackRequestError(resp.get("error") or "Unknown error")

        logger.debug(
            "Fetched %d messages for thread %s in %s",
            len(messages), info.thread_ts, info.channel_id,
        )
        formatted = [
            await format_message(client, msg, include_reactions, user_cache)
            for msg in messages
        ]
        return "\n".join([
            f"# Slack Thread ({len(messages)} messages)",
            f"Channel: {info.channel_id}",
            f"Thread: {info.thread_ts}",
            "",
            "---",
            "",
            *formatted,
        ])

    try:
        resp = await client.conversations_history(
            channel=info.channel_id,
            latest=info.message_ts,
            inclusive=True,
            limit=1,
        )
    except SlackApiError as exc:
        raise _request_error(exc, "Message not found") from exc

    messages = resp.get("messages") or []
    if not resp.get("ok", True) or not messages:
        raise SlackRequestError(resp.get("error") or "Message not found")

    msg = messages[0]
    formatted = await format_message(client, msg, include_reactions, user_cache)
    output = f"# Slack Message\nChannel: {info.channel_id}\n\n---\n\n{formatted}"

    reply_count = msg.get("reply_count") or 0
    if msg.get("thread_ts") and reply_count > 0:
        output += f"\n(This message has {reply_count} replies)"

    return output


async def get_channel_info(client: AsyncWebClient, channel_id: str) -> str:
    """Render name, flags, member count, topic and purpose of a channel."""
    try:
        resp = await client.conversations_info(channel=channel_id)
    except SlackApiError as exc:
        raise _request_error(exc, "Unknown error") from exc

    channel = resp.get("channel")
    if not resp.get("ok", True) or channel is None:
        raise SlackRequestError(resp.get("error") or "Unknown error")

    topic = (channel.get("topic") or {}).get("value")
    purpose = (channel.get("purpose") or {}).get("value")
    created = channel.get("created")

    lines = [
        f"# Channel: #{channel.get('name') or channel_id}",
        f"**ID:** {channel_id}",
        f"**Private:** {'Yes' if channel.get('is_private') else 'No'}",
        f"**Archived:** {'Yes' if channel.get('is_archived') else 'No'}",
        f"**Members:** {channel.get('num_members') or 'Unknown'}",
        f"**Topic:** {topic or '(no topic)'}",
        f"**Purpose:** {purpose or '(no purpose)'}",
    ]
    if created:
        lines.append(f"**Created:** {_iso_timestamp(str(created))}")
    return "\n".join(lines)


async def post_message(
    client: AsyncWebClient,
    channel_id: str,
    text: str,
    thread_ts: str | None = None,
) -> str:
    """Post *text* to a channel, as a thread reply when *thread_ts* is given."""
    kwargs: dict = dict(channel=channel_id, text=text)
    if thread_ts:
        kwargs["thread_ts"] = thread_ts
    try:
        resp = await client.chat_postMessage(**kwargs)
    except SlackApiError as exc:
        raise _request_error(exc, "Unknown error") from exc

    if not resp.get("ok", True):
        raise SlackRequestError(resp.get("error") or "Unknown error")

    where = f"thread {thread_ts} in {channel_id}" if thread_ts else channel_id
    return f"Message posted to {where} (ts: {resp.get('ts')})"
