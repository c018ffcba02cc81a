import logging
from typing import List, Optional
from uuid import UUID

import models
from errors import NotFound
from store import Repository

logger = logging.getLogger(__name__)


class UserRepository(Repository):

    def get_user(
        self,
        user_id: Optional[UUID] = None,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[models.User]:
        # Priority is id, then username, then email. Later keys are ignored
        # whenever an earlier one is supplied.
        if user_id is not None:
            criterion = models.User.id == user_id
        elif username is not None:
            criterion = models.User.username == username
        elif email is not None:
            criterion = models.User.email == email
        else:
            return None

        with self._unit_of_work() as db:
            return db.query(models.User).filter(criterion).first()

    def create_user(self, username: str, email: str, password_hash: str) -> models.User:
        with self._unit_of_work() as db:
            now = self._now()
            user = models.User(
                username=username,
                email=email,
                password=password_hash,
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            db.flush()
            db.refresh(user)
            logger.info(f"User registered: {user.id} ({username})")
            return user

    def update_username(self, user_id: UUID, new_name: str) -> models.User:
        with self._unit_of_work() as db:
            user = self._load(db, user_id)
            user.username = new_name
            user.updated_at = self._now()
            db.flush()
            db.refresh(user)
            logger.info(f"Username changed for {user_id}")
            return user

    def update_password(self, user_id: UUID, new_password_hash: str) -> models.User:
        with self._unit_of_work() as db:
            user = self._load(db, user_id)
            user.password = new_password_hash
            user.updated_at = self._now()
            db.flush()
            db.refresh(user)
            logger.info(f"Password changed for {user_id}")
            return user

    def set_public_key(self, user_id: UUID, public_key: str) -> None:
        with self._unit_of_work() as db:
            user = self._load(db, user_id)
            user.public_key = public_key
            user.updated_at = self._now()
            logger.info(f"Public key registered for {user_id}")

    def search_by_email(self, requesting_user_id: UUID, query: str) -> List[models.User]:
        with self._unit_of_work() as db:
            return db.query(models.User).filter(
                models.User.email.like(query),
                models.User.public_key.is_not(None),
                models.User.id != requesting_user_id,
            ).all()

    @staticmethod
    def _load(db, user_id: UUID) -> models.User:
        user = db.get(models.User, user_id)
        if user is None:
            raise NotFound("User no longer exists")
        return user
