import uuid

import pytest
from sqlalchemy.exc import IntegrityError

import models
from database import build_engine, build_session_factory, get_db
from db_client import DBClient
from errors import NotFound, StoreUnavailable, TransientStoreError
from store import ShareStore, page_bounds, unit_of_work


def test_db_client_implements_every_store_operation(store):
    assert isinstance(store, ShareStore)
    assert not DBClient.__abstractmethods__


def test_page_bounds():
    assert page_bounds(1, 10) == (0, 10)
    assert page_bounds(3, 2) == (4, 2)


def test_foreign_keys_enforced(session_factory):
    with session_factory() as db:
        db.add(models.File(
            user_id=uuid.uuid4(), file_name="x", file_size=1,
            encrypted_aes_key=b"k", encrypted_file=b"f", iv=b"i",
        ))
        with pytest.raises(IntegrityError):
            db.flush()


def test_unit_of_work_commits(session_factory):
    with unit_of_work(session_factory) as db:
        db.add(models.User(username="u", email="u@example.com", password="h"))

    with session_factory() as db:
        assert db.query(models.User).count() == 1


def test_unit_of_work_rolls_back_on_error(session_factory):
    with pytest.raises(NotFound):
        with unit_of_work(session_factory) as db:
            db.add(models.User(username="u", email="u@example.com", password="h"))
            db.flush()
            raise NotFound()

    with session_factory() as db:
        assert db.query(models.User).count() == 0


def test_unavailable_store_is_transient():
    # No tables: every statement fails inside the driver.
    engine = build_engine("sqlite://")
    try:
        client = DBClient(build_session_factory(engine))
        with pytest.raises(TransientStoreError) as exc_info:
            client.get_user(username="anyone")
        assert exc_info.value.status_code == 503
        assert StoreUnavailable is TransientStoreError
    finally:
        engine.dispose()


def test_get_db_closes_session(session_factory):
    gen = get_db(session_factory)
    db = next(gen)
    db.add(models.User(username="u", email="u@example.com", password="h"))
    with pytest.raises(StopIteration):
        next(gen)

    with session_factory() as other:
        assert other.query(models.User).count() == 0
