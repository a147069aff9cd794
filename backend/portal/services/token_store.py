"""
Per-provider token persistence.

Keys follow the layout the web client already uses in local storage:
    {prefix}_access_token   bearer token
    {prefix}_user           JSON profile {name, email, image_url}
    {prefix}_expires_at     ISO timestamp (optional)
"""
import json
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from portal.models.auth import Provider, TokenRecord
from portal.services.storage import KeyValueStorage
from portal.utils.logger import get_logger

logger = get_logger(__name__)


def _key(provider: Provider, name: str) -> str:
    return f"{provider.storage_prefix}_{name}"


class TokenStore:
    """
    Read/write TokenRecords on top of a KeyValueStorage.

    No encryption and no TTL: expiry is only recorded, callers decide
    what to do with it.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def get(self, provider: Provider) -> Optional[TokenRecord]:
        """
        Load the record for provider.

        Returns None unless both token and profile are present and the
        profile parses; a half-written record is as good as none.
        """
        token = self.storage.get_item(_key(provider, "access_token"))
        user_json = self.storage.get_item(_key(provider, "user"))

        if not token or not user_json:
            return None

        expires_at = None
        raw_expiry = self.storage.get_item(_key(provider, "expires_at"))
        if raw_expiry:
            try:
                expires_at = datetime.fromisoformat(raw_expiry)
            except ValueError:
                logger.warning(f"Ignoring unparseable expiry for {provider.value}: {raw_expiry}")

        record = TokenRecord(
            provider=provider,
            access_token=token,
            user_json=user_json,
            expires_at=expires_at,
        )

        try:
            record.user
        except (ValueError, ValidationError) as e:
            logger.warning(f"Stored profile for {provider.value} is unreadable: {e}")
            return None

        return record

    def set(self, provider: Provider, record: TokenRecord) -> None:
        self.storage.set_item(_key(provider, "access_token"), record.access_token)
        self.storage.set_item(_key(provider, "user"), record.user_json)
        if record.expires_at:
            self.storage.set_item(_key(provider, "expires_at"), record.expires_at.isoformat())
        else:
            self.storage.remove_item(_key(provider, "expires_at"))
        logger.info(f"Stored {provider.value} token")

    def clear(self, provider: Provider) -> None:
        for name in ("access_token", "user", "expires_at"):
            self.storage.remove_item(_key(provider, name))
        logger.info(f"Cleared {provider.value} token")


def user_json(user) -> str:
    """Serialize a UserProfile the way the web client stores it."""
    return json.dumps(user.model_dump())
