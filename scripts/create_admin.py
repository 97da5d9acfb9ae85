#!/usr/bin/env python
"""Create the first admin user."""

import argparse
import asyncio

from audit_api.database import async_session_maker, engine
from audit_api.repositories.user_repository import UserRepository
from audit_api.security.password import get_password_service


async def create_admin(email: str, password: str, name: str | None = None, is_admin: bool = True) -> bool:
    """Create an admin user. Returns False when validation fails or the user exists."""
    password_service = get_password_service()

    # Validate password
    is_valid, errors = password_service.validate_password_strength(password)
    if not is_valid:
        print(f"Password validation failed: {errors}")
        return False

    try:
        async with async_session_maker() as session:
            repo = UserRepository(session)
            if await repo.get_by_email(email) is not None:
                print(f"User {email} already exists")
                return False

            await repo.create_user(
                email=email,
                password_hash=password_service.hash_password(password),
                name=name,
                is_admin=is_admin,
            )
            await session.commit()
    finally:
        await engine.dispose()

    print(f"{'Admin' if is_admin else 'User'} created: {email}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email", required=True, help="Email address")
    parser.add_argument("--password", required=True, help="Password (min 8 chars, mixed case and a digit)")
    parser.add_argument("--name", help="Display name")
    parser.add_argument("--read-only", action="store_true", help="Create a user without write access")
    args = parser.parse_args()

    ok = asyncio.run(create_admin(args.email, args.password, args.name, is_admin=not args.read_only))
    raise SystemExit(0 if ok else 1)
