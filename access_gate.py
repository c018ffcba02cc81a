import logging
from typing import Callable
from uuid import UUID

from errors import InvariantViolation, LinkUnavailable
from schemas import RetrievedFile
from security import verify_password
from store import ShareStore

logger = logging.getLogger(__name__)


class AccessGate:
    """Decides whether a recipient may take the ciphertext behind a shared link.

    The gate only hands out what the sender uploaded: encrypted payload,
    wrapped key and IV. Decryption happens on the recipient's side.
    """

    def __init__(self, store: ShareStore,
                 password_verifier: Callable[[str, str], bool] = verify_password):
        self._store = store
        self._verify = password_verifier

    def retrieve(self, shared_id: UUID, requester_id: UUID, password: str) -> RetrievedFile:
        link = self._store.get_shared(shared_id, requester_id)
        if link is None:
            logger.info(f"Retrieval refused for link {shared_id}: missing, expired or not addressed to {requester_id}")
            raise LinkUnavailable()

        if not self._verify(password, link.password):
            logger.info(f"Retrieval refused for link {shared_id}: wrong password")
            raise LinkUnavailable()

        db_file = self._store.get_file(link.file_id)
        if db_file is None:
            logger.error(f"Shared link {link.id} points at missing file {link.file_id}")
            raise InvariantViolation(f"Shared link {link.id} has no file")

        logger.info(f"File {db_file.id} released to {requester_id} via link {shared_id}")
        return RetrievedFile(
            file_id=db_file.id,
            file_name=db_file.file_name,
            file_size=db_file.file_size,
            encrypted_file=db_file.encrypted_file,
            encrypted_aes_key=db_file.encrypted_aes_key,
            iv=db_file.iv,
            expiration_date=link.expiration_date,
        )
