"""
Public API authentication.

Verifies the ``Authorization`` header and resolves the scope of the key.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.database import get_db
from app.models.project import Project
from app.services.api_key_service import APIKeyService, api_key_service
from app.utils.exceptions import AuthenticationError, AuthorizationError

ORGANIZATION_KEY_MESSAGE = "Invalid API key. Are you using an organization key?"


@dataclass(frozen=True)
class AuthScope:
    access_level: str  # "project" or "organization"
    organization_id: str
    project_id: Optional[str] = None
    api_key_id: Optional[str] = None

    @property
    def is_project_scope(self) -> bool:
        return self.access_level == "project" and bool(self.project_id)


@dataclass(frozen=True)
class AuthCheckResult:
    valid_key: bool
    scope: Optional[AuthScope] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "AuthCheckResult":
        return cls(valid_key=False, error=error)


class ApiAuthService:
    """Turns an Authorization header into an :class:`AuthScope`."""

    def __init__(self, db: AsyncSession, keys: Optional[APIKeyService] = None):
        self.db = db
        self.keys = keys or api_key_service

    async def verify_auth_header_and_return_scope(
        self, authorization: Optional[str]
    ) -> AuthCheckResult:
        """
        Verify a ``Bearer <key>`` header.

        Args:
            authorization: Raw header value

        Returns:
            AuthCheckResult with the scope on success, or the error message
        """
        if not authorization:
            return AuthCheckResult.failed("No authorization header")

        scheme, _, token = authorization.strip().partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            return AuthCheckResult.failed("Invalid authorization header")

        api_key = await self.keys.find_by_key(self.db, token)
        if api_key is None or not api_key.is_valid():
            logger.warning(f"Invalid API key attempted (hash {self.keys.hash_key(token)[:12]})")
            return AuthCheckResult.failed("Invalid credentials")

        if api_key.project_id:
            project = await self.db.scalar(
                select(Project.id).where(Project.id == api_key.project_id)
            )
            if project is None:
                logger.warning(f"API key {api_key.public_key}... points at a missing project")
                return AuthCheckResult.failed("Invalid credentials")

        api_key.last_used_at = datetime.now(timezone.utc)
        await self.db.commit()

        return AuthCheckResult(
            valid_key=True,
            scope=AuthScope(
                access_level=api_key.access_level,
                organization_id=api_key.organization_id,
                project_id=api_key.project_id,
                api_key_id=api_key.id,
            ),
        )


async def get_auth_scope(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthScope:
    """Dependency: any valid key, project- or organization-level."""
    auth_check = await ApiAuthService(db).verify_auth_header_and_return_scope(
        request.headers.get("authorization")
    )
    if not auth_check.valid_key:
        raise AuthenticationError(auth_check.error)
    return auth_check.scope


async def require_project_scope(
    scope: AuthScope = Depends(get_auth_scope),
) -> AuthScope:
    """Dependency: a valid project-level key."""
    if not scope.is_project_scope:
        raise AuthorizationError(ORGANIZATION_KEY_MESSAGE)
    return scope
