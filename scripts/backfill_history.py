"""Add an initial status history entry to orders that have none."""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fabnstitch.database import SessionLocal
from fabnstitch import models  # noqa: F401
from fabnstitch.services.order_lifecycle import backfill_missing_history


def main():
    db = SessionLocal()
    try:
        repaired = backfill_missing_history(db)
    finally:
        db.close()

    if repaired:
        print(f"Added status history to {repaired} order(s)")
    else:
        print("All orders already have status history")


if __name__ == "__main__":
    main()
