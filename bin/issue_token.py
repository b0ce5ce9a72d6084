# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Operator tool – make sure a user exists and print a bearer token for it.

    python bin/issue_token.py alice
    python bin/issue_token.py alice --minutes 60
    python bin/issue_token.py --generate-key

The service itself never issues tokens; this script covers bootstrap and
local testing.  ``--generate-key`` prints a fresh MASTER_ENCRYPTION_KEY.
"""

import argparse
import sys
import os
from datetime import timedelta

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/issue_token.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("username", nargs="?", help="user to issue the token for")
    parser.add_argument("--minutes", type=int, default=None, help="token lifetime")
    parser.add_argument("--generate-key", action="store_true", help="print a new master key and exit")
    args = parser.parse_args(argv)
    if not args.generate_key and not args.username:
        parser.error("username is required")
    return args


def issue(username: str, minutes=None) -> str:
    from core.security import create_access_token
    from database import SessionLocal
    from models.user import User

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.username == username).first()
        if user is None:
            user = User(username=username, is_active=True)
            db.add(user)
            db.commit()
            print(f"[issue_token] User '{username}' created.", file=sys.stderr)
        expires = timedelta(minutes=minutes) if minutes else None
        return create_access_token({"user_id": user.id, "sub": user.username}, expires)
    finally:
        db.close()


def main(argv=None):
    args = _parse_args(argv)
    if args.generate_key:
        from core.crypto import generate_key
        print(generate_key())
        return
    print(issue(args.username, args.minutes))


if __name__ == "__main__":
    main()
