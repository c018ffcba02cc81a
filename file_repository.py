import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

import models
from errors import InvariantViolation, NotFound, StoreError
from schemas import Page, ReceivedFileDetails, SentFileDetails, UploadReceipt
from store import Repository, page_bounds

logger = logging.getLogger(__name__)


def _upload_rejected(error: IntegrityError) -> StoreError:
    # PostgreSQL reports SQLSTATE 23503, SQLite only a message.
    orig = error.orig
    if getattr(orig, "pgcode", None) == "23503" or "FOREIGN KEY" in str(orig).upper():
        return NotFound("Sender or recipient no longer exists")
    return InvariantViolation(f"Upload rejected by the store: {orig}")


class FileRepository(Repository):

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
        with self._unit_of_work(on_integrity_error=_upload_rejected) as db:
            now = self._now()
            db_file = models.File(
                user_id=sender_id,
                file_name=file_name,
                file_size=file_size,
                encrypted_aes_key=encrypted_key,
                encrypted_file=encrypted_payload,
                iv=iv,
                created_at=now,
            )
            db.add(db_file)
            db.flush()

            link = models.SharedLink(
                file_id=db_file.id,
                recipient_user_id=recipient_id,
                password=password,
                expiration_date=expiration,
                created_at=now,
            )
            db.add(link)
            db.flush()

            logger.info(
                f"File {db_file.id} ({file_size} bytes) shared by {sender_id} "
                f"with {recipient_id} as link {link.id}"
            )
            return UploadReceipt(file_id=db_file.id, shared_id=link.id)

    def get_file(self, file_id: UUID) -> Optional[models.File]:
        with self._unit_of_work() as db:
            return db.get(models.File, file_id)

    def get_shared(self, shared_id: UUID, requester_id: UUID) -> Optional[models.SharedLink]:
        with self._unit_of_work() as db:
            return db.query(models.SharedLink).filter(
                models.SharedLink.id == shared_id,
                models.SharedLink.recipient_user_id == requester_id,
                models.SharedLink.expiration_date > self._now(),
            ).first()

    def list_sent(self, user_id: UUID, page: int, limit: int) -> Page[SentFileDetails]:
        offset, limit = page_bounds(page, limit)
        Link, File, Recipient = models.SharedLink, models.File, models.User

        with self._unit_of_work() as db:
            rows = db.query(
                File.id.label("file_id"),
                File.file_name,
                Recipient.email.label("recipient_email"),
                Link.expiration_date,
                Link.created_at,
            ).select_from(Link).join(
                File, Link.file_id == File.id
            ).join(
                Recipient, Link.recipient_user_id == Recipient.id
            ).filter(
                File.user_id == user_id
            ).order_by(Link.created_at.desc()).offset(offset).limit(limit).all()

            total_count = db.query(func.count(Link.id)).select_from(Link).join(
                File, Link.file_id == File.id
            ).filter(File.user_id == user_id).scalar()

        return Page[SentFileDetails](
            items=[SentFileDetails(**row._mapping) for row in rows],
            total_count=total_count or 0,
            page=page,
            limit=limit,
        )

    def list_received(self, user_id: UUID, page: int, limit: int) -> Page[ReceivedFileDetails]:
        # Expired links stay listed until the reaper removes them.
        offset, limit = page_bounds(page, limit)
        Link, File, Sender = models.SharedLink, models.File, models.User

        with self._unit_of_work() as db:
            rows = db.query(
                Link.id.label("shared_id"),
                File.file_name,
                Sender.email.label("sender_email"),
                Link.expiration_date,
                Link.created_at,
            ).select_from(Link).join(
                File, Link.file_id == File.id
            ).join(
                Sender, File.user_id == Sender.id
            ).filter(
                Link.recipient_user_id == user_id
            ).order_by(Link.created_at.desc()).offset(offset).limit(limit).all()

            total_count = db.query(func.count(Link.id)).select_from(Link).join(
                File, Link.file_id == File.id
            ).filter(Link.recipient_user_id == user_id).scalar()

        return Page[ReceivedFileDetails](
            items=[ReceivedFileDetails(**row._mapping) for row in rows],
            total_count=total_count or 0,
            page=page,
            limit=limit,
        )
