"""Manual live payment check for a selected provider.

Run from the repository root with:
  PYTHONPATH=src PROVIDER_ID=booking_api BASE_URL=https://rooms.example/api \
  TOKEN=... BOOKING_ID=... python scripts/payment_live_check.py

  PYTHONPATH=src PROVIDER_ID=click CLICK_SERVICE_ID=... \
  CLICK_MERCHANT_USER_ID=... CLICK_SECRET_KEY=... BOOKING_ID=... \
  python scripts/payment_live_check.py --health

Optional environment variables:
  API_URI
  CREDENTIALS_JSON
  MAX_ATTEMPTS

By default the script polls with the immediate first check; pass --wait to use
the initial delay. Press Ctrl+C to cancel a running poll.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from typing import Any

from pyroombooking import Client
from pyroombooking.exceptions import PyRoomBookingError
from pyroombooking.models import PollProgress, PollResult

_LOGGER = logging.getLogger(__name__)

_CREDENTIAL_ENV = {
    "booking_api": {"token": "TOKEN"},
    "click": {
        "service_id": "CLICK_SERVICE_ID",
        "merchant_user_id": "CLICK_MERCHANT_USER_ID",
        "secret_key": "CLICK_SECRET_KEY",
    },
}


def _require_value(name: str, value: str | None) -> str:
    if not value:
        print(f"Missing required value: {name}", file=sys.stderr)
        raise SystemExit(2)
    return value


def _load_credentials(provider_id: str) -> dict[str, Any]:
    raw_json = os.getenv("CREDENTIALS_JSON")
    if raw_json:
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            print(f"CREDENTIALS_JSON is not valid JSON: {exc}", file=sys.stderr)
            raise SystemExit(2) from exc
        if not isinstance(data, dict):
            print("CREDENTIALS_JSON must be a JSON object.", file=sys.stderr)
            raise SystemExit(2)
        return data
    credentials: dict[str, Any] = {}
    for key, env_name in _CREDENTIAL_ENV.get(provider_id, {}).items():
        credentials[key] = _require_value(env_name, os.getenv(env_name))
    return credentials


def _print_progress(progress: PollProgress) -> None:
    print(
        f"Attempt {progress.attempts_made}/{progress.max_attempts}: "
        f"{progress.last_message or '-'}"
    )


def _print_result(result: PollResult) -> None:
    print(f"Booking: {result.booking_id}")
    print(f"Outcome: {result.outcome.value} after {result.attempts} attempt(s)")
    print(f"Paid: {result.is_paid}")
    if result.payment_id:
        print(f"Payment id: {result.payment_id} ({result.method or '-'})")
    if result.message:
        print(f"Message: {result.message}")
    if result.error:
        print(f"Error: {result.error}", file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Poll the payment status of one booking.")
    parser.add_argument("--provider", dest="provider_id", help="Provider id (e.g. click).")
    parser.add_argument("--base-url", dest="base_url", help="Provider base URL.")
    parser.add_argument("--api-uri", dest="api_uri", help="Provider API URI.")
    parser.add_argument("--booking-id", dest="booking_id", help="Booking to check.")
    parser.add_argument(
        "--max-attempts",
        dest="max_attempts",
        type=int,
        help="Override the number of status checks.",
    )
    parser.add_argument(
        "--wait",
        dest="wait",
        action="store_true",
        help="Wait the initial interval before the first check.",
    )
    parser.add_argument(
        "--health",
        dest="health",
        action="store_true",
        help="Run the provider health check before polling (Click only).",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING).",
    )
    return parser.parse_args()


async def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=args.log_level.upper())
    provider_id = _require_value("provider_id", args.provider_id or os.getenv("PROVIDER_ID"))
    booking_id = _require_value("booking_id", args.booking_id or os.getenv("BOOKING_ID"))
    base_url = args.base_url or os.getenv("BASE_URL")
    api_uri = args.api_uri or os.getenv("API_URI")
    max_attempts = args.max_attempts
    if max_attempts is None and os.getenv("MAX_ATTEMPTS"):
        max_attempts = int(os.environ["MAX_ATTEMPTS"])
    credentials = _load_credentials(provider_id)

    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:
        _LOGGER.debug("Signal handlers are not supported on this platform.")

    try:
        async with Client(base_url=base_url, api_uri=api_uri) as client:
            provider = await client.get_provider(provider_id, credentials=credentials)
            if args.health:
                health_check = getattr(provider, "health_check", None)
                if health_check is None:
                    print(f"Provider {provider_id} has no health check.", file=sys.stderr)
                else:
                    health = await health_check()
                    print(f"Health: {health.status} ({health.message})")
                    if not health.healthy:
                        return 1
            poller = client.create_poller(provider)
            _LOGGER.info("Polling %s via %s", booking_id, provider.provider_name)
            result = await poller.poll(
                booking_id,
                max_attempts=max_attempts,
                on_progress=_print_progress,
                immediate=not args.wait,
                cancel=cancel,
            )
    except PyRoomBookingError as exc:
        print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1

    _print_result(result)
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
