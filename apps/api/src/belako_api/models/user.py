from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from belako_api.db.base import Base


class UserRoleEnum(str, Enum):
    FAN = "fan"
    ARTIST = "artist"


class AuthProviderEnum(str, Enum):
    GOOGLE = "google"
    EMAIL = "email"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)
    picture_url = Column(String, nullable=True)
    role = Column(String(length=16), nullable=False, default=UserRoleEnum.FAN.value, server_default=UserRoleEnum.FAN.value)
    auth_provider = Column(
        String(length=16),
        nullable=False,
        default=AuthProviderEnum.EMAIL.value,
        server_default=AuthProviderEnum.EMAIL.value,
    )
    onboarding_completed = Column(Boolean, nullable=False, default=False, server_default="false")
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    tier_progress = relationship("TierProgress", back_populates="user", uselist=False)

    @property
    def is_artist(self) -> bool:
        return self.role == UserRoleEnum.ARTIST.value
