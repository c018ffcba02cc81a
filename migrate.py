"""
migrate.py — Bring an existing database up to the current schema.

SQLAlchemy's create_all() only creates NEW tables, it never touches indexes
on tables that already exist. This script creates the tables if needed and
then adds every index the queries rely on.

Usage:
  python migrate.py

Safe to run multiple times: IF NOT EXISTS prevents errors.
"""

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

from database import build_engine, init_db

logger = logging.getLogger(__name__)

# Each statement is idempotent (IF NOT EXISTS)
MIGRATIONS = [
    # ── users: lookups by username / email ─────────────────────────────────
    "CREATE UNIQUE INDEX IF NOT EXISTS ix_users_username ON users (username)",
    "CREATE UNIQUE INDEX IF NOT EXISTS ix_users_email ON users (email)",

    # ── files: sent listing ────────────────────────────────────────────────
    "CREATE INDEX IF NOT EXISTS ix_files_user_id ON files (user_id)",

    # ── shared_links: received listing, joins, reaper scans ───────────────
    "CREATE INDEX IF NOT EXISTS ix_shared_links_file_id ON shared_links (file_id)",
    "CREATE INDEX IF NOT EXISTS ix_shared_links_recipient_user_id ON shared_links (recipient_user_id)",
    "CREATE INDEX IF NOT EXISTS ix_shared_links_expiration_date ON shared_links (expiration_date)",
    "CREATE INDEX IF NOT EXISTS ix_shared_links_created_at ON shared_links (created_at)",
]


def run_migrations(engine: Engine) -> int:
    """Apply every migration in order and return how many ran."""
    init_db(engine)

    with engine.begin() as conn:
        for i, sql in enumerate(MIGRATIONS, 1):
            conn.execute(text(sql))
            logger.info(f"[{i:02d}] {sql}")

    logger.info(f"Migration complete, {len(MIGRATIONS)} statements applied")
    return len(MIGRATIONS)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    engine = build_engine()
    try:
        run_migrations(engine)
    finally:
        engine.dispose()
