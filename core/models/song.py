"""Song (media item) domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

DEFAULT_TITLE = "New Song"
DEFAULT_ARTIST = "Unknown Artist"


def _http_url(v: str) -> str:
    v = v.strip()
    if not v.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return v


class SongCreate(BaseModel):
    """Metadata for a song whose audio is already in object storage.

    Duration, size, format and thumbnail are optional and stored as given;
    they describe the stored object and are not checked against it.
    """

    title: str = Field(default=DEFAULT_TITLE, max_length=300)
    artist: str = Field(default=DEFAULT_ARTIST, max_length=300)
    url: str = Field(..., min_length=1, max_length=2048)
    duration: float | None = Field(default=None, ge=0, description="Length in seconds")
    size: int | None = Field(default=None, ge=0, description="Size in bytes")
    format: str | None = Field(default=None, max_length=20)
    thumbnail: str | None = Field(default=None, max_length=2048)

    @field_validator("title")
    @classmethod
    def default_blank_title(cls, v: str) -> str:
        return v.strip() or DEFAULT_TITLE

    @field_validator("artist")
    @classmethod
    def default_blank_artist(cls, v: str) -> str:
        return v.strip() or DEFAULT_ARTIST

    @field_validator("url")
    @classmethod
    def require_http_url(cls, v: str) -> str:
        return _http_url(v)

    @field_validator("format")
    @classmethod
    def normalize_format(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().lstrip(".").lower() or None

    @field_validator("thumbnail")
    @classmethod
    def thumbnail_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return _http_url(v)


class Song(BaseModel):
    """Full song entity as stored."""

    id: UUID
    title: str
    artist: str
    url: str
    duration: float | None = None
    size: int | None = None
    format: str | None = None
    thumbnail: str | None = None
    user_email: str
    plays: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}
