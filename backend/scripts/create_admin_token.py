#!/usr/bin/env python
"""
Script to mint an admin access token for the magic code API.

Usage:
    python scripts/create_admin_token.py EMAIL [--promote] [--expires-minutes N]

The user must be a global admin; --promote grants the flag first.
The token is printed on stdout.
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

import repositories.db_models as db_models  # noqa: E402
from authentication.auth import create_access_token  # noqa: E402
from repositories.database import SessionLocal  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create an admin access token")
    parser.add_argument("email", help="Email of the admin user")
    parser.add_argument(
        "--promote",
        action="store_true",
        help="Grant global admin to the user before minting the token",
    )
    parser.add_argument(
        "--expires-minutes",
        dest="expires_minutes",
        type=int,
        help="Token lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None, db: Optional[Session] = None) -> int:
    args = build_parser().parse_args(argv)

    should_close = db is None
    if db is None:
        db = SessionLocal()
    try:
        user = (
            db.query(db_models.User).filter(db_models.User.email == args.email).first()
        )
        if user is None:
            print(f"No user with email {args.email}.", file=sys.stderr)
            return 1

        if args.promote and not user.is_global_admin:
            user.is_global_admin = True
            db.commit()
            logger.info(f"Granted global admin to user {user.id}")

        if not user.is_global_admin:
            print(f"User {args.email} is not a global admin.", file=sys.stderr)
            return 1
    finally:
        if should_close:
            db.close()

    expires = (
        timedelta(minutes=args.expires_minutes) if args.expires_minutes else None
    )
    print(create_access_token({"sub": args.email}, expires_delta=expires))
    return 0


if __name__ == "__main__":
    sys.exit(main())
