"""
API Key management service.

Handles creation and lookup of project- and organization-level API keys.
Only the SHA256 hash of a key is stored.
"""

import secrets
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from loguru import logger

from app.core.config import settings
from app.models.api_key import APIKey


class APIKeyService:
    """Service for managing API keys."""

    KEY_LENGTH = 32  # Bytes of randomness in the secret part
    PUBLIC_KEY_LENGTH = 14  # Characters kept in clear for identification

    @property
    def key_prefix(self) -> str:
        return settings.API_KEY_PREFIX

    def generate_key(self) -> Tuple[str, str, str]:
        """
        Generate a new API key.

        Returns:
            Tuple of (full_key, public_key, key_hash)
            - full_key: The complete API key to give to the caller (shown only once)
            - public_key: Leading characters for identification
            - key_hash: SHA256 hash of the full key for storage
        """
        random_part = secrets.token_urlsafe(self.KEY_LENGTH)
        full_key = f"{self.key_prefix}-{random_part}"
        public_key = full_key[:self.PUBLIC_KEY_LENGTH]
        return full_key, public_key, self.hash_key(full_key)

    def hash_key(self, key: str) -> str:
        """Hash an API key for comparison."""
        return hashlib.sha256(key.encode()).hexdigest()

    async def create_api_key(
        self,
        db: AsyncSession,
        organization_id: str,
        project_id: Optional[str] = None,
        note: Optional[str] = None,
        expires_in_days: Optional[int] = None,
    ) -> Tuple[APIKey, str]:
        """
        Create a new API key.

        Args:
            db: Database session
            organization_id: Organization that owns the key
            project_id: Project the key is bound to; None creates an organization key
            note: Optional description
            expires_in_days: Days until expiration (None = never)

        Returns:
            Tuple of (APIKey model, plain_text_key)
            The plain_text_key is only available at creation time!
        """
        full_key, public_key, key_hash = self.generate_key()

        expires_at = None
        if expires_in_days:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

        api_key = APIKey(
            public_key=public_key,
            key_hash=key_hash,
            note=note,
            organization_id=organization_id,
            project_id=project_id,
            expires_at=expires_at,
            is_active=True,
        )

        db.add(api_key)
        await db.commit()
        await db.refresh(api_key)

        logger.info(
            f"Created {api_key.access_level}-level API key {public_key}... "
            f"for organization {organization_id}"
        )

        return api_key, full_key

    async def find_by_key(self, db: AsyncSession, key: str) -> Optional[APIKey]:
        """Look up a key record by its plain text value."""
        if not key:
            return None
        result = await db.execute(
            select(APIKey).where(APIKey.key_hash == self.hash_key(key))
        )
        return result.scalar_one_or_none()


# Global service instance
api_key_service = APIKeyService()
