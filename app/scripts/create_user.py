"""
Create a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user FULLNAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Site Admin" admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal
from app.core.errors import AccountError
from app.models import Role
from app.services.accounts import register
from app.services.user_store import UserStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Project LV user account.")
    parser.add_argument("fullname", help="Full name (1-100 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.CONTRIBUTOR.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = register(
            UserStore(db), args.fullname, args.email, args.password, role=Role(args.role)
        )
    except AccountError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.email}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
