#!/usr/bin/env python3
"""
Clear transactional data: bills, sessions, orders and tokens.

Devices and customers are left alone. Each table is confirmed separately
unless --yes is given. A table is kept when a table that references it was
kept.

Usage:
    python scripts/clear_sessions.py
    python scripts/clear_sessions.py --yes
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session

from gamespace.db.session import SessionLocal
from gamespace.models import Bill, FoodLineItem, GameSession, Order, Token

# Children before parents so foreign keys hold
TABLES = [
    ("bills", [Bill]),
    ("sessions", [GameSession]),
    ("orders", [FoodLineItem, Order]),
    ("tokens", [Token]),
]

# Tables whose rows point at the keyed table
REFERENCED_BY = {
    "bills": [],
    "sessions": [],
    "orders": ["bills", "sessions"],
    "tokens": ["bills", "sessions", "orders"],
}


def confirm(question: str) -> bool:
    return input(f"{question} (y/n): ").strip().lower() in ("y", "yes")


def clear_tables(db: Session, ask: Callable[[str], bool]) -> Dict[str, int]:
    """Delete the confirmed tables; returns rows deleted per cleared table."""
    kept = set()
    cleared: Dict[str, int] = {}
    for label, models in TABLES:
        blockers = [t for t in REFERENCED_BY[label] if t in kept]
        if blockers:
            print(f"Skipping {label}: {', '.join(blockers)} still reference them")
            kept.add(label)
            continue
        if not ask(f"Clear all {label}?"):
            print(f"Skipping {label}")
            kept.add(label)
            continue
        deleted = 0
        try:
            for model in models:
                deleted += db.query(model).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        cleared[label] = deleted
        print(f"{deleted} {label} rows deleted")
    return cleared


def main():
    parser = argparse.ArgumentParser(description="Delete bills, sessions, orders and tokens")
    parser.add_argument("--yes", action="store_true", help="do not ask for confirmation")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        clear_tables(db, (lambda question: True) if args.yes else confirm)
    finally:
        db.close()


if __name__ == "__main__":
    main()
