"""
Command-line interface for exercising the payOS APIs.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence, Tuple

from .api import ConfigError, create_client
from .core.config import load_config
from .core.errors import PayOSError


def configure_logging(level_name: str) -> None:
    """Send log records to stderr; unknown level names fall back to INFO."""
    level = logging.getLevelName(level_name.upper())
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_override(value: str) -> Tuple[str, str]:
    """argparse type for ``--set KEY=VALUE``."""
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key.strip(), val


def _read_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payos",
        description="Call the payOS merchant API and compute payOS signatures",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing PAYOS_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=parse_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    sign = commands.add_parser("sign-body", help="Print the body signature of a JSON file")
    sign.add_argument("file", help="JSON document to sign")
    webhook = commands.add_parser(
        "verify-webhook", help="Verify a webhook payload saved as JSON and print its data"
    )
    webhook.add_argument("file", help="Webhook body received from payOS")
    link = commands.add_parser("payment-link", help="Fetch a payment link")
    link.add_argument("id", help="Payment link id or order code")
    commands.add_parser("balance", help="Fetch the payout account balance")
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    overrides = dict(args.set or ())

    try:
        config = load_config(env_file=args.env_file, overrides=overrides)
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_client(config=config)
    try:
        if args.command == "sign-body":
            _emit({"signature": client.signer.sign_body(_read_json(args.file))})
        elif args.command == "verify-webhook":
            _emit(client.webhooks.verify(_read_json(args.file)))
        elif args.command == "payment-link":
            _emit(client.payment_requests.get(args.id))
        elif args.command == "balance":
            _emit(client.payouts_account.balance())
    except (OSError, json.JSONDecodeError) as exc:
        logging.error("Could not read input: %s", exc)
        return 1
    except PayOSError as exc:
        logging.error("%s failed (%s): %s", args.command, exc.kind.value, exc)
        return 1
    finally:
        client.close()
    return 0


def main() -> None:
    raise SystemExit(run_cli())
