"""Utility script to print a signed session token for local testing."""

from __future__ import annotations

import argparse
from datetime import timedelta

from wyzebank.config import get_settings
from wyzebank.infrastructure.security import (
    create_session_expiry_token,
    create_session_token,
)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for token issuing."""

    parser = argparse.ArgumentParser(
        description="Issue a Wyze Bank session token for the given user id.",
    )
    parser.add_argument("user_id", type=int, help="Positive id of the user")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (default: SESSION_TOKEN_EXPIRE_MINUTES)",
    )
    parser.add_argument(
        "--cookies",
        action="store_true",
        help="Print a Cookie header with both session cookies instead of the bare token.",
    )
    return parser.parse_args()


def main() -> None:
    """Print a session token using the provided command line arguments."""

    args = parse_args()
    if args.user_id <= 0:
        raise SystemExit("The user id must be a positive integer.")
    if args.minutes is not None and args.minutes <= 0:
        raise SystemExit("The lifetime must be a positive number of minutes.")

    expires_delta = timedelta(minutes=args.minutes) if args.minutes else None
    token = create_session_token(args.user_id, expires_delta=expires_delta)
    if not args.cookies:
        print(token)
        return

    settings = get_settings()
    expiry_token = create_session_expiry_token(args.user_id)
    print(
        f"Cookie: {settings.session_cookie_name}={token}; "
        f"{settings.session_expiry_cookie_name}={expiry_token}"
    )


if __name__ == "__main__":
    main()
