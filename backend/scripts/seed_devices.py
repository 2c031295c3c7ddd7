#!/usr/bin/env python3
"""
Seed the device roster.

Usage:
    python scripts/seed_devices.py
    python scripts/seed_devices.py --create-tables
"""

import argparse
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gamespace.db.base import Base
from gamespace.db.seed import seed_devices
from gamespace.db.session import SessionLocal, engine
import gamespace.models  # noqa: F401


def main():
    parser = argparse.ArgumentParser(description="Insert missing devices from the default roster")
    parser.add_argument("--create-tables", action="store_true", help="create tables before seeding")
    args = parser.parse_args()

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        added = seed_devices(db)
        print(f"{added} device(s) added.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
