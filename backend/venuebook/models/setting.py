"""Platform setting model — runtime key/value configuration."""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.database import Base, TimestampMixin


class PlatformSetting(TimestampMixin, Base):
    """Admin-editable platform setting (payment methods, expiry windows...)."""

    __tablename__ = "platform_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<PlatformSetting(key={self.key!r})>"
