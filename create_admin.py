#!/usr/bin/env python3
"""
Admin Account Creator
Creates (or promotes) an admin account for the school directory back-office.
Run this once after the database is migrated.
"""
import asyncio
import getpass
import sys

from school_directory.database import AsyncSessionLocal, close_db, init_db
from school_directory.models import UserRole
from school_directory.services import user_service
from school_directory.services.errors import SchoolDirectoryError
from school_directory.services.row_store import RowStore


async def create_admin(email: str, password: str) -> None:
    await init_db()
    try:
        async with AsyncSessionLocal() as session:
            store = RowStore(session)
            existing = await user_service.get_user_by_email(store, email)
            if existing is not None:
                await user_service.set_role(store, existing.id, UserRole.ADMIN)
                print(f"\n✅ Promoted existing account {email} to admin")
                return

            user = await user_service.create_user(store, email, password, role=UserRole.ADMIN)
            print(f"\n✅ Created admin account {user.email} ({user.id})")
    finally:
        await close_db()


def main():
    """Main function to create the admin account."""
    print("=" * 60)
    print("School Directory Admin Account")
    print("=" * 60)
    print()

    email = sys.argv[1] if len(sys.argv) > 1 else input("Admin email: ")
    email = email.strip().lower()
    if "@" not in email:
        print("\n❌ Error: Invalid email address")
        return

    # Get password securely (won't echo to screen)
    password = getpass.getpass("Enter admin password: ")
    if len(password) < 6:
        print("\n❌ Error: Password must be at least 6 characters")
        return

    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("\n❌ Error: Passwords do not match")
        return

    try:
        asyncio.run(create_admin(email, password))
    except SchoolDirectoryError as e:
        print(f"\n❌ Error creating admin account: {e.message}")


if __name__ == "__main__":
    main()
