"""slackthread command line — run the MCP or HTTP server, or resolve a link offline."""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

import certifi

# Fix macOS Python SSL cert issue
os.environ.setdefault("SSL_CERT_FILE", certifi.where())

from .config import Config
from .urls import is_slack_url, parse_slack_url

logger = logging.getLogger(__name__)


def configure_logging(config: Config) -> None:
    """Set up root logging from *config* (stderr plus an optional dated file)."""
    log_level = getattr(logging, config.log_level, logging.INFO)
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_dir:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / f"slackthread-{datetime.now():%Y-%m-%d}.log"
        handlers.append(logging.FileHandler(str(log_file)))

    logging.basicConfig(level=log_level, format=log_format, handlers=handlers, force=True)

    # Per-request HTTP chatter drowns out useful logs at DEBUG.
    for noisy in ("slack_sdk", "aiohttp", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(max(log_level, logging.INFO))


def _load_config() -> Config:
    try:
        return Config.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def parse(args: argparse.Namespace) -> None:
    """Resolve a Slack link and print its identifiers as JSON."""
    if not is_slack_url(args.url):
        print("Error: Invalid Slack URL", file=sys.stderr)
        sys.exit(1)
    info = parse_slack_url(args.url)
    if info is None:
        print("Error: Could not parse URL", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(info.to_dict(), indent=2))


def serve(args: argparse.Namespace) -> None:
    """Run the HTTP tool server."""
    import uvicorn
    from slack_sdk.web.async_client import AsyncWebClient

    from .http_server import create_app
    from .tools import ToolRegistry

    config = _load_config()
    configure_logging(config)

    client = AsyncWebClient(token=config.slack_bot_token)

    async def _get_client() -> AsyncWebClient:
        return client

    registry = ToolRegistry(_get_client, default_limit=config.thread_limit)
    host = args.host or config.host
    port = args.port or config.port

    logger.info("slackthread HTTP server on http://%s:%d", host, port)
    uvicorn.run(
        create_app(registry),
        host=host,
        port=port,
        log_level=config.log_level.lower(),
    )


def run_mcp(args: argparse.Namespace) -> None:
    """Run the MCP server over stdio."""
    from . import mcp_server

    mcp_server.main()


# ---------------------------------------------------------------------------
# CLI entrypoint
# ---------------------------------------------------------------------------


class _SlackThreadParser(argparse.ArgumentParser):
    """ArgumentParser that shows our help instead of argparse's error message."""

    def error(self, message: str) -> None:
        _print_help()
        sys.exit(2)


def _build_parser() -> argparse.ArgumentParser:
    parser = _SlackThreadParser(
        prog="slackthread",
        description="slackthread — read Slack threads from shareable links",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("mcp", help="Run the MCP server over stdio")

    sv = sub.add_parser("serve", help="Run the HTTP tool server")
    sv.add_argument("--host", default=None, help="Bind address (defaults to $HOST or 127.0.0.1)")
    sv.add_argument("--port", type=int, default=None, help="Port (defaults to $PORT or 3000)")

    pa = sub.add_parser("parse", help="Resolve a Slack link without calling the API")
    pa.add_argument("url", help="Slack message, thread or channel link")

    sub.add_parser("help", help="Show this help message")

    return parser


def _print_help() -> None:
    print("""slackthread — read Slack threads from shareable links

Usage: slackthread <command> [options]

Commands:
  mcp              Run the MCP server over stdio
  serve            Run the HTTP tool server
  parse <url>      Resolve a Slack link without calling the API
  help             Show this help message

Examples:
  slackthread mcp                                             Serve tools to an MCP client
  slackthread serve --port 8080                               Serve tools over HTTP
  slackthread parse https://acme.slack.com/archives/C1/p1609459200123456

Run 'slackthread <command> --help' for details on a specific command.""")


def main() -> None:
    """Sync entrypoint for the console script."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "mcp":
        run_mcp(args)
    elif args.command == "serve":
        try:
            serve(args)
        except KeyboardInterrupt:
            pass
    elif args.command == "parse":
        parse(args)
    else:
        # No command or 'help'
        _print_help()


if __name__ == "__main__":
    main()
