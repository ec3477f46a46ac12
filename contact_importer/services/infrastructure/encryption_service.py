"""
Encryption service for stored secrets.
Uses Fernet symmetric encryption so credentials never sit in the store in clear.
"""

from cryptography.fernet import Fernet, InvalidToken

from contact_importer.config import settings
from contact_importer.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class EncryptionError(Exception):
    """Custom exception for encryption/decryption errors."""

    pass


def _get_fernet() -> Fernet:
    """
    Get Fernet instance with encryption key from environment.

    Raises:
        EncryptionError: If encryption key is not configured or invalid
    """
    if not settings.ENCRYPTION_KEY:
        raise EncryptionError("ENCRYPTION_KEY not configured in environment")

    try:
        return Fernet(settings.ENCRYPTION_KEY.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.error("Failed to initialize Fernet cipher", error=str(e))
        raise EncryptionError(f"Invalid encryption key: {e}") from e


def encrypt_secret(value: str) -> str:
    """
    Encrypt a secret for storage.

    Returns:
        str: Fernet token (URL-safe base64 text)

    Raises:
        EncryptionError: If the value is empty or encryption fails
    """
    if not value or not isinstance(value, str):
        raise EncryptionError("Secret must be a non-empty string")

    fernet = _get_fernet()
    encrypted = fernet.encrypt(value.encode("utf-8")).decode("ascii")

    logger.debug("Secret encrypted", secret_length=len(value), encrypted_length=len(encrypted))
    return encrypted


def decrypt_secret(encrypted_value: str) -> str:
    """
    Decrypt a secret read back from storage.

    Raises:
        EncryptionError: If decryption fails or the token is invalid
    """
    if not encrypted_value or not isinstance(encrypted_value, str):
        raise EncryptionError("Encrypted secret must be a non-empty string")

    fernet = _get_fernet()
    try:
        return fernet.decrypt(encrypted_value.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        logger.error("Secret decryption failed - invalid token")
        raise EncryptionError("Invalid or corrupted secret") from e
