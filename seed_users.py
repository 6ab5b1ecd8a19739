#!/usr/bin/env python3
"""
Seed the sample teacher and student accounts.

Existing accounts are left untouched, so the script can run repeatedly.
"""

import argparse
import os
import sys

from src.constants import DEFAULT_FLASK_ENV, ENV_FLASK_ENV
from src.database.utils import SAMPLE_USERS, DatabaseUtils
from utils.env_loader import setup_environment


def main():
    parser = argparse.ArgumentParser(description="Seed sample Answer Paper Grader accounts")
    parser.add_argument(
        "--list", action="store_true", help="Only list the sample accounts"
    )
    args = parser.parse_args()

    if args.list:
        for entry in SAMPLE_USERS:
            print(f"  {entry['role']:8} {entry['email']} / {entry['password']}")
        return 0

    setup_environment()
    from webapp.app_factory import create_app

    app = create_app(os.getenv(ENV_FLASK_ENV, DEFAULT_FLASK_ENV))
    try:
        with app.app_context():
            result = DatabaseUtils.seed_sample_users()
    except Exception as e:
        print(f"Error seeding users: {e}", file=sys.stderr)
        return 1

    print(f"Created: {result['created']}, Skipped (already exist): {result['skipped']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
