"""
Request / response models. Field names on the wire are camelCase.
"""

from datetime import datetime, timezone
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from .tables import Player, Song


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProfileRequest(BaseModel):
    # Type checked by hand so the error message matches the API contract
    display_name: Any = Field(default=None, alias="displayName")


class ProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    display_name: str = Field(alias="displayName")
    created_at: datetime = Field(alias="createdAt")
    last_active: datetime = Field(alias="lastActive")

    @classmethod
    def from_row(cls, player: Player) -> "ProfileResponse":
        return cls(
            id=player.id,
            display_name=player.display_name,
            created_at=_as_utc(player.created_at),
            last_active=_as_utc(player.last_active),
        )


class SongResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    youtube_id: str = Field(alias="youtubeId")
    title: str
    artist: str
    theme: str

    @classmethod
    def from_row(cls, song: Song) -> "SongResponse":
        return cls(
            id=song.id,
            youtube_id=song.youtube_id,
            title=song.title,
            artist=song.artist,
            theme=song.theme,
        )


class SongListResponse(BaseModel):
    songs: List[SongResponse]
    total: int

    @classmethod
    def from_rows(cls, rows: List[Song]) -> "SongListResponse":
        return cls(songs=[SongResponse.from_row(s) for s in rows], total=len(rows))
