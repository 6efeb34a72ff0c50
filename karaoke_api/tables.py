from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class Player(Base):
    __tablename__ = "players"

    id = Column(String(36), primary_key=True, default=_uuid)
    display_name = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    last_active = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr utility
        return f"Player(id={self.id}, display_name={self.display_name})"


class Song(Base):
    __tablename__ = "songs"
    __table_args__ = (
        Index("idx_songs_theme", "theme"),
        Index("idx_songs_title", "title"),
        Index("idx_songs_artist", "artist"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    youtube_id = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=False)
    theme = Column(String(50), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr utility
        return f"Song(title={self.title}, artist={self.artist}, theme={self.theme})"
