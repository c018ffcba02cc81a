from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar
from datetime import datetime
from uuid import UUID


class UploadReceipt(BaseModel):
    file_id: UUID
    shared_id: UUID


class SentFileDetails(BaseModel):
    file_id: UUID
    file_name: str
    recipient_email: str
    expiration_date: datetime
    created_at: Optional[datetime]


class ReceivedFileDetails(BaseModel):
    shared_id: UUID  # the link id, what the recipient retrieves with
    file_name: str
    sender_email: str
    expiration_date: datetime
    created_at: Optional[datetime]


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    page: int
    limit: int


class RetrievedFile(BaseModel):
    file_id: UUID
    file_name: str
    file_size: int
    encrypted_file: bytes
    encrypted_aes_key: bytes
    iv: bytes
    expiration_date: datetime


class ReapReport(BaseModel):
    links_deleted: int = 0
    files_deleted: int = 0

    @property
    def nothing_to_do(self) -> bool:
        return self.links_deleted == 0
