"""Core domain models."""

from core.models.song import Song, SongCreate

__all__ = ["Song", "SongCreate"]
