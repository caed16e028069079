"""Tests for song models."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from core.models import Song, SongCreate
from utils.timezone import now_utc


class TestSongCreate:
    def test_defaults(self):
        song = SongCreate(url="https://cdn.example.com/a.mp3")
        assert song.title == "New Song"
        assert song.artist == "Unknown Artist"

    def test_blank_strings_fall_back_to_defaults(self):
        song = SongCreate(title="  ", artist="", url="https://cdn.example.com/a.mp3")
        assert song.title == "New Song"
        assert song.artist == "Unknown Artist"

    def test_trims_values(self):
        song = SongCreate(title=" Pulse ", artist=" Demo ", url=" https://cdn.example.com/a.mp3 ")
        assert (song.title, song.artist, song.url) == ("Pulse", "Demo", "https://cdn.example.com/a.mp3")

    def test_url_required(self):
        with pytest.raises(ValidationError):
            SongCreate(title="x")

    def test_rejects_non_http_url(self):
        with pytest.raises(ValidationError):
            SongCreate(url="ftp://example.com/a.mp3")


class TestAudioMetadata:
    def test_optional_by_default(self):
        song = SongCreate(url="https://cdn.example.com/a.mp3")
        assert (song.duration, song.size, song.format, song.thumbnail) == (None, None, None, None)

    def test_accepts_metadata(self):
        song = SongCreate(
            url="https://cdn.example.com/a.mp3",
            duration=183.2,
            size=4_400_000,
            format=".MP3",
            thumbnail="https://cdn.example.com/a.png",
        )
        assert song.duration == 183.2
        assert song.size == 4_400_000
        assert song.format == "mp3"
        assert song.thumbnail == "https://cdn.example.com/a.png"

    @pytest.mark.parametrize("field,value", [("duration", -1), ("size", -5)])
    def test_rejects_negative(self, field, value):
        with pytest.raises(ValidationError):
            SongCreate(url="https://cdn.example.com/a.mp3", **{field: value})

    def test_blank_thumbnail_is_none(self):
        assert SongCreate(url="https://cdn.example.com/a.mp3", thumbnail=" ").thumbnail is None

    def test_rejects_non_http_thumbnail(self):
        with pytest.raises(ValidationError):
            SongCreate(url="https://cdn.example.com/a.mp3", thumbnail="javascript:alert(1)")


class TestSong:
    def test_row_without_metadata(self):
        song = Song.model_validate({
            "id": uuid4(),
            "title": "Pulse",
            "artist": "Demo",
            "url": "https://cdn.example.com/a.mp3",
            "duration": None,
            "size": None,
            "format": None,
            "thumbnail": None,
            "user_email": "listener@test.local",
            "plays": 2,
            "created_at": now_utc(),
        })
        assert song.plays == 2
        assert song.model_dump(mode="json")["duration"] is None
