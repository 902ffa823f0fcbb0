"""Slack link resolution — turn shareable links into API identifiers.

Slack hands out several link shapes for the same conversation data:

* ``https://acme.slack.com/archives/C0123ABCD/p1609459200123456``
  (optionally with ``?thread_ts=1609459200.000100`` for a reply)
* ``https://app.slack.com/client/T0123/C0123ABCD/thread/C0123ABCD-1609459200.123456``
* ``https://acme.slack.com/archives/C0123ABCD`` (a bare channel)

Everything here is pure string work: no network, no state, and no
exceptions escape for bad input.  Callers get a :class:`LinkInfo` or
``None``.
"""

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

from .errors import NotSlackUrlError, UnresolvableUrlError

SLACK_DOMAIN = "slack.com"

# Host label used by the tenant-agnostic web client.
_CLIENT_HOST_LABEL = "app"

# re.ASCII keeps IGNORECASE from folding non-ASCII lookalikes into [A-Z].
_FLAGS = re.IGNORECASE | re.ASCII

_ARCHIVE_MESSAGE_RE = re.compile(r"/archives/([A-Z0-9]+)/p([0-9]+)", _FLAGS)
_CLIENT_THREAD_RE = re.compile(
    r"/client/[A-Z0-9]+/([A-Z0-9]+)/thread/[A-Z0-9]+-([0-9]+\.[0-9]+)", _FLAGS
)
_BARE_CHANNEL_RE = re.compile(r"/archives/([A-Z0-9]+)/?", _FLAGS)

# Characters a URL host may never contain (whitespace, controls, delimiters).
_FORBIDDEN_HOST_RE = re.compile(r"[\x00-\x20\x7f#%/<>?@\[\\\]^|]")

# Compact link timestamps are seconds (10 digits) + microseconds (6 digits).
_COMPACT_TS_LEN = 16
_SECONDS_LEN = 10


@dataclass(frozen=True)
class LinkInfo:
    """Identifiers recovered from a Slack link.

    ``message_ts`` is empty for a bare channel link, and ``thread_ts`` is
    ``None`` only in that case.
    """

    channel_id: str
    message_ts: str
    workspace: str | None = None
    thread_ts: str | None = None

    @property
    def is_channel_only(self) -> bool:
        return self.thread_ts is None and not self.message_ts

    def to_dict(self) -> dict[str, str]:
        """Serialize to the wire mapping (camelCase keys, optional keys omitted)."""
        data: dict[str, str] = {}
        if self.workspace is not None:
            data["workspace"] = self.workspace
        data["channelId"] = self.channel_id
        data["messageTs"] = self.message_ts
        if self.thread_ts is not None:
            data["threadTs"] = self.thread_ts
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LinkInfo":
        """Rebuild from :meth:`to_dict` output.  Values are taken verbatim."""
        return cls(
            channel_id=data["channelId"],
            message_ts=data.get("messageTs", ""),
            workspace=data.get("workspace"),
            thread_ts=data.get("threadTs"),
        )


def normalize_timestamp(raw: str) -> str:
    """Convert a compact link timestamp to API form.

    ``p1609459200123456`` and ``1609459200123456`` both become
    ``1609459200.123456``.  Anything that is already dotted, or is not
    exactly 16 characters, is returned unchanged.
    """
    ts = raw[1:] if raw.startswith("p") else raw
    if "." in ts:
        return ts
    if len(ts) == _COMPACT_TS_LEN:
        return f"{ts[:_SECONDS_LEN]}.{ts[_SECONDS_LEN:]}"
    return ts


def _split(url: object):
    """Return ``urlsplit(url)`` for something URL-shaped, else ``None``."""
    if not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        # urlsplit defers port validation to this property.
        parts.port
    except ValueError:
        return None
    if not parts.scheme or not hostname or _FORBIDDEN_HOST_RE.search(hostname):
        return None
    return parts


def is_slack_url(url: object) -> bool:
    """True if *url* parses and its host is slack.com or a subdomain of it."""
    parts = _split(url)
    if parts is None:
        return False
    host = parts.hostname
    return host == SLACK_DOMAIN or host.endswith("." + SLACK_DOMAIN)


def _workspace_from_host(host: str) -> str | None:
    label = host.split(".", 1)[0]
    return None if label == _CLIENT_HOST_LABEL else label


def _query_thread_ts(query: str) -> str | None:
    values = parse_qs(query, keep_blank_values=True).get("thread_ts")
    if values and values[0]:
        return values[0]
    return None


def parse_slack_url(url: object) -> LinkInfo | None:
    """Resolve a Slack link to a :class:`LinkInfo`.

    Returns ``None`` when *url* is not a URL at all or its path matches
    none of the known shapes.  The host is not checked here; gate with
    :func:`is_slack_url` first when the distinction matters.

    An archive link without ``thread_ts`` is treated as the root of its
    own thread (``thread_ts == message_ts``).  For a reply link copied
    without that parameter this is an approximation: the reply is
    resolved as if it started a thread.
    """
    parts = _split(url)
    if parts is None:
        return None

    workspace = _workspace_from_host(parts.hostname)
    path = parts.path

    m = _ARCHIVE_MESSAGE_RE.fullmatch(path)
    if m:
        message_ts = normalize_timestamp(m.group(2))
        thread_ts = _query_thread_ts(parts.query)
        return LinkInfo(
            workspace=workspace,
            channel_id=m.group(1),
            message_ts=message_ts,
            thread_ts=thread_ts or message_ts,
        )

    m = _CLIENT_THREAD_RE.fullmatch(path)
    if m:
        ts = m.group(2)
        return LinkInfo(
            workspace=workspace,
            channel_id=m.group(1),
            message_ts=ts,
            thread_ts=ts,
        )

    m = _BARE_CHANNEL_RE.fullmatch(path)
    if m:
        return LinkInfo(workspace=workspace, channel_id=m.group(1), message_ts="")

    return None


def resolve_or_raise(url: str) -> LinkInfo:
    """Gate and resolve *url*, raising instead of returning ``None``.

    Raises :class:`NotSlackUrlError` for foreign or malformed links and
    :class:`UnresolvableUrlError` for Slack links of an unknown shape.
    """
    if not is_slack_url(url):
        raise NotSlackUrlError(url)
    info = parse_slack_url(url)
    if info is None:
        raise UnresolvableUrlError(url)
    return info
