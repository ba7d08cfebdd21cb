"""Print a bearer token for an existing user to stdout.

Usage:
    python -m backend.print_dev_token student@example.edu
"""
import sys

from backend.auth import jwt_handler
from backend.database import SessionLocal
from backend.models import answer, question  # noqa: F401
from backend.models.user import User
from backend.services.user_directory import normalize_email


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python -m backend.print_dev_token <email>", file=sys.stderr)
        return 2

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == normalize_email(args[0])).first()
    finally:
        db.close()

    if user is None:
        print(f"No user with email {args[0]}", file=sys.stderr)
        return 1

    print(jwt_handler.issue(user))
    return 0


if __name__ == "__main__":
    sys.exit(main())
