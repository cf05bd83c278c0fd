#!/usr/bin/env python3
"""Management commands.

Usage:
    python manage.py init-db
    python manage.py seed [--company NAME]
    python manage.py hash-password [PASSWORD]
"""
import argparse
import getpass
import sys


def init_db(args: argparse.Namespace) -> int:
    from app.db import Base, engine

    Base.metadata.create_all(bind=engine)
    print("✅ Database tables created")
    return 0


def seed(args: argparse.Namespace) -> int:
    from app.db import get_db_context
    from app.db.seed import seed_all

    with get_db_context() as db:
        company = seed_all(db, args.company)
        print(f"✅ Seeded company '{company.name}' (id={company.id})")
    return 0


def hash_password(args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Admin password: ")

    if len(password) < 6:
        print("❌ Error: Password must be at least 6 characters long")
        return 1

    from app.core.security import get_password_hash

    password_hash = get_password_hash(password)

    print("✅ Password hash generated!")
    print()
    print("Add this to your .env file:")
    print("-" * 80)
    print(f"ADMIN_PASSWORD={password_hash}")
    print("-" * 80)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check-in Rewards management commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create all database tables").set_defaults(func=init_db)

    seed_parser = subparsers.add_parser("seed", help="Seed badges, a company, rewards and a QR code")
    seed_parser.add_argument("--company", help="Company name (default: 'Default Company')")
    seed_parser.set_defaults(func=seed)

    hash_parser = subparsers.add_parser("hash-password", help="Hash an admin password with Argon2")
    hash_parser.add_argument("password", nargs="?", help="Password to hash (prompted if omitted)")
    hash_parser.set_defaults(func=hash_password)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
