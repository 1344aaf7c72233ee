"""
Verify that every member balance matches the tail of its ledger chain.

Usage (from backend/):
  python -m mysterybox.scripts.check_ledger [--tenant-code CODE]

Exits 1 when any member is inconsistent.
"""
from __future__ import annotations

import argparse
import sys

from mysterybox.components.ledger.service import check_ledger_consistency
from mysterybox.models.profile import Profile, ProfileRole
from mysterybox.models.tenant import Tenant
from mysterybox.platform.database import SessionLocal


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check credit ledger consistency.")
    parser.add_argument("--tenant-code", default=None)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        query = db.query(Profile.id).filter(Profile.role == ProfileRole.MEMBER)
        if args.tenant_code:
            tenant = db.query(Tenant).filter(Tenant.code == args.tenant_code).first()
            if tenant is None:
                print(f"Tenant not found: {args.tenant_code}", file=sys.stderr)
                return 2
            query = query.filter(Profile.tenant_id == tenant.id)

        broken = 0
        checked = 0
        for (member_id,) in query.order_by(Profile.id.asc()):
            result = check_ledger_consistency(db, member_id)
            checked += 1
            if not result.consistent:
                broken += 1
                print(
                    f"member_id={member_id} balance={result.credit_balance} "
                    f"ledger_tail={result.last_balance_after} "
                    f"first_broken_entry={result.first_broken_entry_id}"
                )
        print(f"Checked {checked} members, {broken} inconsistent")
        return 1 if broken else 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
