"""
Gloo User Models
Local profile data kept alongside the identity provider's user record
"""

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional

from core.database import Base
from utils.date_utils import utcnow, to_iso


class User(Base):
    """Local user row keyed by the identity provider's user id"""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    # Profile information
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    id_social_media: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "idSocialMedia": self.id_social_media,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
