#!/usr/bin/env python3
"""
Seed script to create initial user accounts.

Usage:
    # One account per "email:password_env" pair
    export SEED_USERS="me@example.com:SEED_PASSWORD_ME,partner@example.com:SEED_PASSWORD_PARTNER"
    export SEED_PASSWORD_ME="your_password"
    export SEED_PASSWORD_PARTNER="your_password"

    # Run the script
    python scripts/seed_users.py
"""
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from daybook.auth import create_user
from daybook.database import SessionLocal, init_db


def parse_seed_users(raw: str):
    """Split SEED_USERS into (email, password_env) pairs."""
    pairs = []
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        email, _, password_env = entry.partition(":")
        pairs.append((email.strip(), password_env.strip()))
    return pairs


def seed_users():
    """Create user accounts from environment variables."""
    users = parse_seed_users(os.getenv("SEED_USERS", ""))
    if not users:
        print("SEED_USERS is not set; nothing to do")
        sys.exit(1)

    init_db()
    db = SessionLocal()
    created = []
    skipped = []
    errors = []

    try:
        for email, password_env in users:
            password = os.getenv(password_env) if password_env else None
            if not password:
                errors.append(f"{email} - missing {password_env or 'password'} env var")
                continue

            try:
                create_user(db, email, password)
            except LookupError:
                skipped.append(f"{email} - already exists")
                continue
            except ValueError as e:
                errors.append(f"{email} - {e}")
                continue
            created.append(email)

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    # Print summary
    print("\n=== User Seed Summary ===\n")

    if created:
        print("Created:")
        for item in created:
            print(f"  + {item}")

    if skipped:
        print("\nSkipped (already exist):")
        for item in skipped:
            print(f"  - {item}")

    if errors:
        print("\nErrors:")
        for item in errors:
            print(f"  ! {item}")

    print(f"\nTotal: {len(created)} created, {len(skipped)} skipped, {len(errors)} errors")

    if errors:
        sys.exit(1)


if __name__ == "__main__":
    seed_users()
