"""
Prowl command line tool.

Sends messages and walks through the api key retrieval using the
PROWL_* environment variables (or a .env file):

    python -m prowl_notify send "Backup" "Backup finished" --priority 1
    python -m prowl_notify verify <api key>
    python -m prowl_notify token
    PROWL_TOKEN=<token> python -m prowl_notify apikey --wait
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from pydantic import ValidationError

from prowl_notify.client import ProwlClient
from prowl_notify.core.config import Settings, client_config_from_settings
from prowl_notify.core.logging_config import get_logger, setup_logging
from prowl_notify.exceptions import ProwlError
from prowl_notify.models import Priority

logger = get_logger(__name__)


# Color codes for CLI output
class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    END = '\033[0m'


def print_success(msg: str):
    print(f"{Colors.GREEN}✓{Colors.END} {msg}")


def print_error(msg: str):
    print(f"{Colors.RED}✗{Colors.END} {msg}", file=sys.stderr)


def print_info(msg: str):
    print(f"{Colors.BLUE}ℹ{Colors.END} {msg}")


async def run_send(client: ProwlClient, args: argparse.Namespace) -> None:
    remaining = await client.add(args.priority, args.event, args.description, args.url)
    print_success(f"Message sent, {remaining} api calls left")


async def run_verify(client: ProwlClient, args: argparse.Namespace) -> None:
    remaining = await client.verify(args.api_key)
    print_success(f"Api key is valid, {remaining} api calls left")


async def run_token(client: ProwlClient, args: argparse.Namespace) -> None:
    approve_url = await client.retrieve_token()
    print_success(f"Please approve the api key request at: {approve_url}")
    print_info(f"Then run with PROWL_TOKEN={client.config().token} to retrieve the api key")


async def run_apikey(client: ProwlClient, args: argparse.Namespace) -> None:
    if args.wait:
        api_key = await client.wait_for_api_key()
    else:
        api_key = await client.retrieve_api_key()
    print_success(f"New api key: {api_key}")


COMMANDS = {
    "send": run_send,
    "verify": run_verify,
    "token": run_token,
    "apikey": run_apikey,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prowl_notify",
        description="Send Prowl push notifications and retrieve api keys",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    send_parser = subparsers.add_parser("send", help="Send a message to the configured api keys")
    send_parser.add_argument("event", help="Message title")
    send_parser.add_argument("description", help="Message body")
    send_parser.add_argument(
        "--priority",
        type=int,
        default=int(Priority.NORMAL),
        choices=[int(p) for p in Priority],
        help="Priority from -2 (very low) to 2 (emergency)",
    )
    send_parser.add_argument("--url", default="", help="URL to attach to the message")

    verify_parser = subparsers.add_parser("verify", help="Verify an api key")
    verify_parser.add_argument("api_key", help="Api key to verify")

    subparsers.add_parser("token", help="Retrieve a token for a new api key")

    apikey_parser = subparsers.add_parser("apikey", help="Exchange an approved token for an api key")
    apikey_parser.add_argument(
        "--wait",
        action="store_true",
        help="Keep polling until the user approves the request",
    )

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> None:
    config = client_config_from_settings(settings)
    async with ProwlClient(config, base_url=settings.PROWL_BASE_URL) as client:
        await COMMANDS[args.command](client, args)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    try:
        settings = Settings()
        if args.command == "send" and not settings.credentials_ready:
            print_error("No api key configured, set PROWL_API_KEYS")
            return 1
        setup_logging(log_level=args.log_level or settings.LOG_LEVEL)
        asyncio.run(_run(args, settings))
    except ValidationError as e:
        print_error(f"Invalid configuration: {e}")
        return 1
    except ProwlError as e:
        print_error(str(e))
        logger.debug("Prowl command failed", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
