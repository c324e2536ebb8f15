#!/usr/bin/env python3
"""
Password Hash Generator
Generates the bcrypt hash for the console admin password.
Run this script to create the ADMIN_PASSWORD_HASH for your .env file.

Usage:
    python generate_password_hash.py            # prompt for a new hash
    python generate_password_hash.py --check    # test a password against ADMIN_PASSWORD_HASH
"""
import getpass
import sys

from app.config import settings
from app.utils.auth import hash_password, verify_password


def generate():
    """Prompt twice for a password and print its hash."""
    print("=" * 60)
    print("CMS Admin Console Password Hash Generator")
    print("=" * 60)
    print()
    print("Copy the output to your .env file as ADMIN_PASSWORD_HASH")
    print()

    # Get password securely (won't echo to screen)
    password = getpass.getpass("Enter admin password: ")
    if not password:
        print("\n❌ Error: Password cannot be empty")
        return 1

    if password != getpass.getpass("Confirm password: "):
        print("\n❌ Error: Passwords do not match")
        return 1

    print("\n⏳ Generating hash (this may take a moment)...")
    hashed = hash_password(password)

    print("\n✅ Success! Copy this line to your .env file:\n")
    print(f"ADMIN_PASSWORD_HASH={hashed}")
    print()
    print("⚠️  Keep this hash secret and never commit it to version control!")
    print()
    return 0


def check():
    """Verify a password against the configured ADMIN_PASSWORD_HASH."""
    if not settings.ADMIN_PASSWORD_HASH:
        print("❌ ADMIN_PASSWORD_HASH is not set in the environment or .env")
        return 1

    password = getpass.getpass("Enter password to check: ")
    if verify_password(password, settings.ADMIN_PASSWORD_HASH):
        print("✅ Password matches ADMIN_PASSWORD_HASH")
        return 0
    print("❌ Password does not match ADMIN_PASSWORD_HASH")
    return 1


def main():
    if "--check" in sys.argv[1:]:
        return check()
    return generate()


if __name__ == "__main__":
    sys.exit(main())
