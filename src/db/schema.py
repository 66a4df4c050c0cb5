"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.shared_types import SessionStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGameSession(Base):
    __tablename__ = "game_sessions"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    player_x_id: Mapped[str]
    player_o_id: Mapped[str]
    public_key_pem: Mapped[str] = mapped_column(Text)
    # erased once the session's log has been verified
    private_key_pem: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(default=SessionStatus.OPEN.value)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
