"""
Minimal script that uses the public API to create a payOS payment link.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional, Sequence

from payos import ConfigError, PayOSError, create_client, load_config
from payos.cli import configure_logging, parse_override


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a payOS payment link using the SDK API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing PAYOS_* settings",
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
    parser.add_argument(
        "--order-code",
        type=int,
        help="Merchant order code (default: current time in milliseconds)",
    )
    parser.add_argument("--amount", type=int, default=2000, help="Amount in VND (default: 2000)")
    parser.add_argument(
        "--description",
        help="Transfer description shown to the payer (default: 'Order <order code>')",
    )
    parser.add_argument(
        "--return-url",
        default="https://example.com/success",
        help="Where payOS redirects after a successful payment",
    )
    parser.add_argument(
        "--cancel-url",
        default="https://example.com/cancel",
        help="Where payOS redirects when the payer cancels",
    )
    parser.add_argument(
        "--cancel-reason",
        help="Cancel the link right after creating it, with this reason",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    overrides = dict(args.set or ())
    try:
        config = load_config(env_file=args.env_file, overrides=overrides)
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    order_code = args.order_code or int(time.time() * 1000)
    payment_data = {
        "orderCode": order_code,
        "amount": args.amount,
        "description": args.description or f"Order {order_code}",
        "returnUrl": args.return_url,
        "cancelUrl": args.cancel_url,
    }

    with create_client(config=config) as client:
        logging.info("Creating payment link for order %s on %s", order_code, config.base_url)
        try:
            link = client.payment_requests.create(payment_data)
        except PayOSError as exc:
            logging.error("Payment link creation failed (%s): %s", exc.kind.value, exc)
            return 1
        logging.info("Checkout URL: %s", link.get("checkoutUrl"))

        if not args.cancel_reason:
            return 0

        try:
            cancelled = client.payment_requests.cancel(order_code, args.cancel_reason)
        except PayOSError as exc:
            logging.error("Cancelling order %s failed: %s", order_code, exc)
            return 1
        logging.info("Payment link is now %s", cancelled.get("status"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
