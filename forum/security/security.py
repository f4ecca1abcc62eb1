import secrets
from typing import Any, Dict

from passlib.context import CryptContext

from forum.core.config import settings
from forum.core.logger import get_logger

logger = get_logger(__name__)


def _build_context() -> CryptContext:
    options: Dict[str, Any] = {
        "schemes": [settings.PASSWORD_HASH_SCHEME],
        "deprecated": "auto",
    }
    if settings.PASSWORD_HASH_ROUNDS:
        options[f"{settings.PASSWORD_HASH_SCHEME}__rounds"] = settings.PASSWORD_HASH_ROUNDS
    return CryptContext(**options)


pwd_context = _build_context()


def hash_password(password: str) -> str:
    """
    Hash a plain text password with the configured salted scheme.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Compare plain password to stored hash.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def generate_session_token() -> str:
    """
    Opaque, URL-safe session token for the session cookie.
    """
    return secrets.token_urlsafe(32)
