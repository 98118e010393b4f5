#!/usr/bin/env python3
"""
Verify the PostgreSQL integration test database configuration.

The integration suite drops and recreates every table, so it must never point
at the application database.
"""

import os
import sys

from dotenv import load_dotenv


def main() -> int:
    """Check test database configuration."""
    load_dotenv()

    app_db = os.getenv("DATABASE_URL")
    test_db = os.getenv("TEST_DATABASE_URL")

    print(f"Application DB: {app_db}")
    print(f"Test DB:        {test_db}")
    print()

    if not test_db:
        print("TEST_DATABASE_URL is not set; PostgreSQL integration tests will be skipped.")
        return 0

    if test_db == app_db:
        print("✗ TEST_DATABASE_URL equals DATABASE_URL. Integration tests would drop its tables.")
        return 1

    if "test" not in test_db.lower():
        print("⚠️  Test database URL doesn't contain 'test'; consider a name like 'slotbook_test'.")

    print("✓ Test database configuration looks good. Run: pytest tests/test_postgres_integration.py")
    return 0


if __name__ == "__main__":
    sys.exit(main())
