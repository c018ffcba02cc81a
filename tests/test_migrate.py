from sqlalchemy import inspect

from migrate import MIGRATIONS, run_migrations


def test_migrations_are_idempotent(engine):
    assert run_migrations(engine) == len(MIGRATIONS)
    assert run_migrations(engine) == len(MIGRATIONS)


def test_indexes_present(engine):
    run_migrations(engine)
    inspector = inspect(engine)

    link_indexes = {ix["name"] for ix in inspector.get_indexes("shared_links")}
    assert {
        "ix_shared_links_file_id",
        "ix_shared_links_recipient_user_id",
        "ix_shared_links_expiration_date",
        "ix_shared_links_created_at",
    } <= link_indexes
    assert "ix_files_user_id" in {ix["name"] for ix in inspector.get_indexes("files")}


def test_creates_tables_on_empty_database():
    from database import build_engine

    engine = build_engine("sqlite://")
    try:
        run_migrations(engine)
        assert {"users", "files", "shared_links"} <= set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
