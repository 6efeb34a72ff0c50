"""Thin repository helpers for players and songs.

Route handlers validate input; these functions only talk to the session.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .tables import Player, Song


def create_player(session: Session, display_name: str) -> Player:
    now = datetime.now(timezone.utc)
    player = Player(display_name=display_name, created_at=now, last_active=now)
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


def get_player(session: Session, player_id: str) -> Optional[Player]:
    return session.get(Player, player_id)


def update_player(session: Session, player_id: str, display_name: str) -> Optional[Player]:
    """Rename a player and refresh ``last_active``. None if the id is unknown."""
    player = session.get(Player, player_id)
    if player is None:
        return None
    player.display_name = display_name
    player.last_active = datetime.now(timezone.utc)
    session.commit()
    session.refresh(player)
    return player


def list_songs(session: Session, theme: Optional[str] = None) -> List[Song]:
    stmt = select(Song)
    if theme:
        stmt = stmt.where(Song.theme == theme)
    stmt = stmt.order_by(Song.title.asc())
    return list(session.scalars(stmt))


def search_songs(session: Session, query: str) -> List[Song]:
    """Case-insensitive substring match on title or artist."""
    pattern = f"%{query}%"
    stmt = (
        select(Song)
        .where(or_(Song.title.ilike(pattern), Song.artist.ilike(pattern)))
        .order_by(Song.title.asc())
    )
    return list(session.scalars(stmt))


def replace_songs(session: Session, songs: Iterable[dict]) -> int:
    """Clear the catalog and insert *songs*. Returns the number inserted."""
    session.query(Song).delete()
    count = 0
    for song in songs:
        session.add(
            Song(
                youtube_id=song["youtubeId"],
                title=song["title"],
                artist=song["artist"],
                theme=song["theme"],
            )
        )
        count += 1
    session.commit()
    return count
