"""Exceptions raised by slackthread operations.

The URL resolver itself never raises; these are used by the layers that
call it (thread reader, tool registry) to report what went wrong.
"""


class SlackThreadError(Exception):
    """Base class for errors reported back to the tool caller."""


class NotSlackUrlError(SlackThreadError):
    """The link does not point at a Slack host."""

    def __init__(self, url: str) -> None:
        super().__init__("Invalid Slack URL")
        self.url = url


class UnresolvableUrlError(SlackThreadError):
    """The link is on a Slack host but its path is not a known shape."""

    def __init__(self, url: str, reason: str = "Could not parse Slack URL") -> None:
        super().__init__(reason)
        self.url = url


class SlackRequestError(SlackThreadError):
    """A Slack Web API call failed or returned nothing usable."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code
