from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a user or shared-link password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify plain password against bcrypt hash. Never raises, returns False on error."""
    try:
        return pwd_context.verify(password, hashed)
    except (ValueError, TypeError):
        return False
