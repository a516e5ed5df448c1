"""
Make Admin

Grants (or with --revoke, removes) admin rights for an existing user so
they can moderate school edits.

Usage:
    cd apps/api
    python scripts/make_admin.py admin@schoolscope.com.au
    python scripts/make_admin.py admin@schoolscope.com.au --revoke
"""

import argparse
import asyncio
import sys

from schoolscope.core.database import async_session_maker, close_db
from schoolscope.modules.users.repository import UserRepository


async def make_admin(email: str, is_admin: bool = True) -> bool:
    """Set the admin flag for ``email``. Returns False if no such user."""
    try:
        async with async_session_maker() as db:
            updated = await UserRepository.set_admin(db, email, is_admin=is_admin)
            await db.commit()
    finally:
        await close_db()

    if updated:
        action = "is now an admin" if is_admin else "is no longer an admin"
        print(f"[OK] {email} {action}")
    else:
        print(f"[FAIL] User with email {email} not found")
    return updated


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Grant admin rights to a SchoolScope user.")
    parser.add_argument("email", help="Email address of an existing user")
    parser.add_argument("--revoke", action="store_true", help="Remove admin rights instead")
    args = parser.parse_args(argv)

    updated = asyncio.run(make_admin(args.email, is_admin=not args.revoke))
    return 0 if updated else 1


if __name__ == "__main__":
    sys.exit(main())
