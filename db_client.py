from typing import Optional

from sqlalchemy.orm import sessionmaker

from file_repository import FileRepository
from reaper import ExpirationReaper
from schemas import ReapReport
from store import Clock, ShareStore
from user_repository import UserRepository


class DBClient(UserRepository, FileRepository, ExpirationReaper, ShareStore):
    """The store adapter handed to the web layer.

    Built once at startup around the shared session factory; holds nothing
    else, so one instance may serve every request concurrently.
    """

    def __init__(self, session_factory: sessionmaker, clock: Optional[Clock] = None):
        super().__init__(session_factory, clock)

    def delete_expired_files(self) -> ReapReport:
        return self.reap()
