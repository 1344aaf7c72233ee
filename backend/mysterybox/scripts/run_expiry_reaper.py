"""
Expire overdue boxes once, in the foreground (same logic as the Celery beat task).

Usage (from backend/):
  python -m mysterybox.scripts.run_expiry_reaper
  python -m mysterybox.scripts.run_expiry_reaper --dry-run
"""
from __future__ import annotations

import argparse

from mysterybox.components.boxes.reaper import expire_overdue, overdue_ids
from mysterybox.platform.config import settings
from mysterybox.platform.database import SessionLocal
from mysterybox.platform.logging import setup_logging
from mysterybox.shared.utils import utcnow


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Expire PURCHASED boxes past their expires_at.")
    parser.add_argument("--batch-size", type=int, default=settings.EXPIRY_REAPER_BATCH_SIZE)
    parser.add_argument("--dry-run", action="store_true", help="Only count overdue boxes")
    args = parser.parse_args(argv)

    setup_logging()
    db = SessionLocal()
    try:
        if args.dry_run:
            pending = overdue_ids(db, now=utcnow(), limit=args.batch_size)
            print(f"Overdue boxes (first batch): {len(pending)}")
            return 0
        count = expire_overdue(db, batch_size=args.batch_size)
        print(f"Expired {count} boxes")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
