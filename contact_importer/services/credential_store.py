"""
Property store for credentials and job settings kept outside the source tree.

Values live in Redis under a common prefix and are Fernet-encrypted before
they are written.
"""

import redis

from contact_importer.config import settings
from contact_importer.infrastructure.observability.logging import get_logger
from contact_importer.services.infrastructure.encryption_service import (
    EncryptionError,
    decrypt_secret,
    encrypt_secret,
)

logger = get_logger(__name__)

KEY_PREFIX = "contact_importer:property:"
BREVO_API_KEY_PROPERTY = "BREVO_API_KEY"


class CredentialStore:
    """get/set/delete named properties; reads degrade to None when Redis is down."""

    def __init__(self, client: redis.Redis | None = None):
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=10,
                socket_timeout=10,
            )
        return self._client

    def read_property(self, name: str) -> str | None:
        """
        Read and decrypt a property.

        Unlike get_property, a Redis failure is not treated as "not set".

        Raises:
            redis.RedisError: If the store cannot be reached
        """
        stored = self.client.get(KEY_PREFIX + name)
        if not stored:
            return None

        try:
            return decrypt_secret(stored)
        except EncryptionError as e:
            logger.error("Stored property could not be decrypted", property=name, error=str(e))
            return None

    def get_property(self, name: str) -> str | None:
        try:
            return self.read_property(name)
        except redis.RedisError as e:
            logger.error("Property read failed", property=name, error=str(e))
            return None

    def set_property(self, name: str, value: str) -> None:
        """Raises EncryptionError or redis.RedisError when the value cannot be stored."""
        self.client.set(KEY_PREFIX + name, encrypt_secret(value))
        logger.info("Property stored", property=name)

    def delete_property(self, name: str) -> bool:
        deleted = self.client.delete(KEY_PREFIX + name)
        return bool(deleted)


def resolve_brevo_api_key(store: CredentialStore) -> str | None:
    """Environment setting first, then the stored property."""
    if settings.BREVO_API_KEY:
        return settings.BREVO_API_KEY
    return store.get_property(BREVO_API_KEY_PROPERTY)
