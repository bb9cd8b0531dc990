"""
API Key model for public API authentication.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.project import generate_id


class APIKey(Base):
    """
    API key scoped to either a single project or a whole organization.

    Keys with ``project_id`` set are project-level keys; keys without one are
    organization-level keys.
    """

    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True, default=generate_id)

    # Key identification
    public_key = Column(String(20), nullable=False, index=True)  # Display prefix of the secret
    key_hash = Column(String(128), nullable=False, unique=True)  # SHA256 hash of the full key
    note = Column(Text, nullable=True)

    # Ownership
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True
    )
    organization = relationship("Organization")
    project = relationship("Project")

    # Status
    is_active = Column(Boolean, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)  # Null = never expires

    # Usage tracking
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    def __repr__(self):
        return f"<APIKey(id={self.id}, public_key='{self.public_key}')>"

    @property
    def access_level(self) -> str:
        return "project" if self.project_id else "organization"

    def is_valid(self) -> bool:
        """Check if the API key is currently valid."""
        if not self.is_active:
            return False
        if self.expires_at is not None:
            expires_at = self.expires_at
            # SQLite drops tzinfo on the way back
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if datetime.now(timezone.utc) > expires_at:
                return False
        return True
