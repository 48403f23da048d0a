"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

Magic code and flood timestamps are integer epoch seconds so that deadline
comparisons are exact and independent of the database's timezone handling.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class MagicCodeStatus(str, enum.Enum):
    """Lifecycle of a magic code. Transitions only ACTIVE -> REVOKED."""

    ACTIVE = "active"
    REVOKED = "revoked"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def _new_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_global_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    magic_codes: Mapped[List["MagicCode"]] = relationship(
        "MagicCode", back_populates="user", cascade="all, delete-orphan"
    )


class ClientApplication(Base):
    """A client application (consumer) that magic codes are issued for."""

    __tablename__ = "client_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    client_id: Mapped[str] = mapped_column(
        String(128), unique=True, index=True, nullable=False
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    # Account the client acts for by default, if any
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    default_user: Mapped[Optional["User"]] = relationship("User")


class MagicCode(Base):
    """Short-lived code authorizing one operation for one (user, client, email)."""

    __tablename__ = "magic_codes"
    __table_args__ = (
        Index("ix_magic_codes_lookup", "value", "user_id", "operation"),
        Index("ix_magic_codes_expire", "expire"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    uuid: Mapped[str] = mapped_column(
        String(36), unique=True, nullable=False, default=_new_uuid
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("client_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    operation: Mapped[str] = mapped_column(String(256), nullable=False)
    expire: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[MagicCodeStatus] = mapped_column(
        Enum(MagicCodeStatus), default=MagicCodeStatus.ACTIVE, nullable=False
    )
    login_allowed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created: Mapped[int] = mapped_column(Integer, nullable=False)
    changed: Mapped[int] = mapped_column(Integer, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="magic_codes")
    client: Mapped["ClientApplication"] = relationship("ClientApplication")

    def revoke(self) -> "MagicCode":
        self.status = MagicCodeStatus.REVOKED
        return self


class FloodEvent(Base):
    """One registered event for a (event, identifier) flood counter."""

    __tablename__ = "flood_events"
    __table_args__ = (
        Index("ix_flood_events_lookup", "event", "identifier", "timestamp"),
        Index("ix_flood_events_expiration", "expiration"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event: Mapped[str] = mapped_column(String(64), nullable=False)
    identifier: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp: Mapped[int] = mapped_column(Integer, nullable=False)
    expiration: Mapped[int] = mapped_column(Integer, nullable=False)
