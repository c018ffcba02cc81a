"""
store.py — The repository interface and the transactional scope it runs in.

``ShareStore`` lists every operation the web layer may call. ``DBClient``
(db_client.py) is its only implementation. ``unit_of_work`` wraps one
operation in a session + transaction and turns SQLAlchemy failures into the
errors defined in errors.py.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import func

import models
from errors import StoreError, TransientStoreError, UniqueConstraintViolation
from schemas import Page, ReapReport, ReceivedFileDetails, SentFileDetails, UploadReceipt

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _duplicate(error: IntegrityError) -> StoreError:
    return UniqueConstraintViolation()


@contextmanager
def unit_of_work(
    session_factory: sessionmaker,
    on_integrity_error: Optional[Callable[[IntegrityError], StoreError]] = None,
):
    """Open a session, begin a transaction, commit on success.

    Any exception rolls the transaction back before the session is closed,
    so a multi-row write is either fully visible or not at all.
    """
    session: Session = session_factory()
    try:
        with session.begin():
            yield session
    except IntegrityError as e:
        logger.warning(f"Integrity error rolled back: {e.orig}")
        raise (on_integrity_error or _duplicate)(e) from e
    except (OperationalError, InterfaceError, PoolTimeoutError) as e:
        logger.error(f"Store unavailable: {e}")
        raise TransientStoreError() from e
    except DBAPIError as e:
        if e.connection_invalidated:
            logger.error(f"Connection lost mid-transaction: {e}")
            raise TransientStoreError() from e
        raise
    finally:
        session.close()


class Repository:
    """Base for the concrete repositories: holds the pool handle and the clock."""

    def __init__(self, session_factory: sessionmaker, clock: Optional[Clock] = None):
        self._session_factory = session_factory
        self._clock = clock

    def _now(self):
        # The store's own clock unless one was injected.
        if self._clock is None:
            return func.now()
        return self._clock()

    def _unit_of_work(self, on_integrity_error: Optional[Callable[[IntegrityError], StoreError]] = None):
        return unit_of_work(self._session_factory, on_integrity_error)


class ShareStore(ABC):
    """Every operation the request-handling layer may invoke."""

    # ── users ────────────────────────────────────────────────

    @abstractmethod
    def get_user(
        self,
        user_id: Optional[UUID] = None,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[models.User]:
        """
        Look a user up by id, username or email.

        Only the first supplied key, in that order, is used.
        """
        pass  # pragma: no cover

    @abstractmethod
    def create_user(self, username: str, email: str, password_hash: str) -> models.User:
        pass  # pragma: no cover

    @abstractmethod
    def update_username(self, user_id: UUID, new_name: str) -> models.User:
        pass  # pragma: no cover

    @abstractmethod
    def update_password(self, user_id: UUID, new_password_hash: str) -> models.User:
        pass  # pragma: no cover

    @abstractmethod
    def set_public_key(self, user_id: UUID, public_key: str) -> None:
        pass  # pragma: no cover

    @abstractmethod
    def search_by_email(self, requesting_user_id: UUID, query: str) -> List[models.User]:
        """
        Key-ready users whose email matches ``query`` (SQL LIKE).

        The requesting user is never part of the result.
        """
        pass  # pragma: no cover

    # ── files and links ──────────────────────────────────────

    @abstractmethod
    def save_encrypted_file(
        self,
        sender_id: UUID,
        file_name: str,
        file_size: int,
        recipient_id: UUID,
        password: str,
        expiration: datetime,
        encrypted_key: bytes,
        encrypted_payload: bytes,
        iv: bytes,
    ) -> UploadReceipt:
        """
        Store a file and its shared link in one transaction.

        Returns:
            UploadReceipt with the new file id and shared link id
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_file(self, file_id: UUID) -> Optional[models.File]:
        pass  # pragma: no cover

    @abstractmethod
    def get_shared(self, shared_id: UUID, requester_id: UUID) -> Optional[models.SharedLink]:
        """
        Return the link if it exists, belongs to ``requester_id`` and has not
        expired. Every other case returns None.
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_sent(self, user_id: UUID, page: int, limit: int) -> Page[SentFileDetails]:
        pass  # pragma: no cover

    @abstractmethod
    def list_received(self, user_id: UUID, page: int, limit: int) -> Page[ReceivedFileDetails]:
        pass  # pragma: no cover

    # ── maintenance ──────────────────────────────────────────

    @abstractmethod
    def delete_expired_files(self) -> ReapReport:
        pass  # pragma: no cover


def page_bounds(page: int, limit: int) -> Tuple[int, int]:
    """Translate a 1-indexed page into (offset, limit)."""
    return (page - 1) * limit, limit
