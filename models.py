import uuid

from sqlalchemy import Column, String, DateTime, BigInteger, Text, ForeignKey, LargeBinary, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


# ─────────────────────────────────────────────────────────────
# User Model
# ─────────────────────────────────────────────────────────────
class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # credential hash, never plaintext
    public_key = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    files = relationship("File", back_populates="owner")

    def __repr__(self):
        return f"<User(id='{self.id}', username='{self.username}', email='{self.email}')>"


# ─────────────────────────────────────────────────────────────
# Encrypted File
# ─────────────────────────────────────────────────────────────
class File(Base):
    __tablename__ = "files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    encrypted_aes_key = Column(LargeBinary, nullable=False)
    encrypted_file = Column(LargeBinary, nullable=False)
    iv = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="files")
    shared_link = relationship("SharedLink", back_populates="file", uselist=False)

    def __repr__(self):
        return f"<File(id='{self.id}', file_name='{self.file_name}', file_size={self.file_size})>"


# ─────────────────────────────────────────────────────────────
# Shared Link (one per file, unit of expiration)
# ─────────────────────────────────────────────────────────────
class SharedLink(Base):
    __tablename__ = "shared_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    file_id = Column(Uuid, ForeignKey("files.id"), nullable=False, index=True)
    recipient_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    password = Column(String(255), nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    file = relationship("File", back_populates="shared_link")
    recipient = relationship("User")

    def __repr__(self):
        return (
            f"<SharedLink(id='{self.id}', file_id='{self.file_id}', "
            f"recipient_user_id='{self.recipient_user_id}', expiration_date='{self.expiration_date}')>"
        )
