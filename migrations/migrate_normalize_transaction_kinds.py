#!/usr/bin/env python3
"""Rewrite legacy transaction kind spellings to CREDIT or DEBIT.

Rows written before the uppercase convention carry spellings such as
"credit", "income" or "dr":
- credit, cr, income, in  → CREDIT
- debit, dr, expense, out → DEBIT

Rows with an unrecognized kind are listed and left as they are; reports skip
them until they are fixed by hand.

Usage:
    python migrations/migrate_normalize_transaction_kinds.py [--db-path PATH] [--dry-run]
"""

import argparse
import sys
from pathlib import Path

# Make the finovate package importable without installing it
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from sqlalchemy import func, inspect
from finovate.database.factories import create_sqlite_database
from finovate.database.models import Transaction
from finovate.domain.kinds import KIND_SYNONYMS


def normalize_kinds(session) -> int:
    """Update every recognized non-canonical spelling; returns rows touched."""
    folded = func.lower(func.trim(Transaction.kind))
    rewritten = 0
    for kind, spellings in KIND_SYNONYMS.items():
        stale = session.query(Transaction).filter(
            folded.in_(spellings), Transaction.kind != kind.value
        )
        count = stale.count()
        if count:
            stale.update({"kind": kind.value}, synchronize_session=False)
        print(f"  {kind.value}: {count} row(s)")
        rewritten += count

    recognized = [spelling for spellings in KIND_SYNONYMS.values() for spelling in spellings]
    for txn in session.query(Transaction).filter(~folded.in_(recognized)):
        print(f"  Unrecognized kind {txn.kind!r} on transaction {txn.id} (owner {txn.owner_id})")
    return rewritten


def migrate_database(database_path: str | None = None, dry_run: bool = False) -> int:
    """Normalize stored kinds in one transaction.

    Args:
        database_path: SQLite file to migrate; FINOVATE_DB_PATH or the
            default location when omitted
        dry_run: Roll back instead of committing

    Returns:
        Number of rows rewritten, or that would be rewritten on a dry run
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()
    session = db.session_factory()
    try:
        if "transactions" not in inspect(session.get_bind()).get_table_names():
            raise RuntimeError("Missing table transactions; initialize the schema first")

        rewritten = normalize_kinds(session)
        if dry_run:
            session.rollback()
        else:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
        db.disconnect()

    verb = "would be rewritten" if dry_run else "rewritten"
    print(f"{rewritten} row(s) {verb}")
    return rewritten


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--db-path",
        help="Database file (defaults to FINOVATE_DB_PATH or ~/.finovate/finovate.db)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report without writing")
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path, dry_run=args.dry_run)
    except Exception as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
