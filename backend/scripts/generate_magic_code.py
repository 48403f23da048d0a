#!/usr/bin/env python
"""
Script to generate a magic code for a user from the command line.

Usage:
    python scripts/generate_magic_code.py OPERATION --uid N [--client-id ID] [--email ADDR]

Without --client-id the default client application is used. The code value
is printed on stdout.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from models.exceptions import DomainException  # noqa: E402
from repositories.database import SessionLocal  # noqa: E402
from services.magic_code_service import MagicCodeService  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a magic code")
    parser.add_argument("operation", help="Operation the code authorizes")
    parser.add_argument("--uid", type=int, help="User ID to generate the code for")
    parser.add_argument(
        "--client-id",
        dest="client_id",
        help="Public client identifier (default: the default client)",
    )
    parser.add_argument("--email", help="Target email (default: the user's email)")
    return parser


def main(argv: Optional[Sequence[str]] = None, db: Optional[Session] = None) -> int:
    """Generate a code and print its value."""
    args = build_parser().parse_args(argv)

    if not args.uid:
        print("No user ID specified.", file=sys.stderr)
        return 1

    should_close = db is None
    if db is None:
        db = SessionLocal()
    try:
        client = MagicCodeService.resolve_client(db, args.client_id)
        code = MagicCodeService.issue(
            db,
            operation=args.operation,
            user_id=args.uid,
            client_id=client.id,
            email=args.email,
        )
    except DomainException as e:
        logger.error(f"Magic code generation failed: {e.message}")
        print(e.message, file=sys.stderr)
        return 1
    finally:
        if should_close:
            db.close()

    print(code.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
