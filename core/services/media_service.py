"""
Media service for a listener's song library.

Songs are metadata rows pointing at audio already held in object storage.
Every query is scoped to the identity in the current request context.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.exceptions import NotFoundError
from core.models import Song, SongCreate
from utils.user_context import get_current_email
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class MediaService:
    """Service for song operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, data: SongCreate) -> Song:
        """
        Register a song for the current identity.

        Args:
            data: Title, artist, storage URL and optional audio metadata

        Returns:
            Created song
        """
        email = get_current_email()

        row = self.postgres.execute_returning(
            """
            INSERT INTO songs (
                id, title, artist, url, duration, size, format, thumbnail,
                user_email, plays, created_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, 0, %s)
            RETURNING *
            """,
            (
                uuid4(), data.title, data.artist, data.url,
                data.duration, data.size, data.format, data.thumbnail,
                email, now_utc(),
            )
        )[0]

        song = Song.model_validate(row)
        logger.info(f"Song {song.id} added for {email}")
        return song

    def get_by_id(self, song_id: UUID) -> Song | None:
        """Song by ID if it belongs to the current identity."""
        row = self.postgres.execute_single(
            "SELECT * FROM songs WHERE id = %s AND user_email = %s",
            (song_id, get_current_email())
        )

        if row is None:
            return None

        return Song.model_validate(row)

    def list_songs(self, limit: int = 100) -> list[Song]:
        """
        List the current identity's songs.

        Returns:
            Songs ordered by creation time DESC
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM songs
            WHERE user_email = %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (get_current_email(), limit)
        )

        return [Song.model_validate(row) for row in rows]

    def delete(self, song_id: UUID) -> bool:
        """
        Delete a song.

        Returns:
            True if deleted, False if not found
        """
        rows = self.postgres.execute_returning(
            "DELETE FROM songs WHERE id = %s AND user_email = %s RETURNING id",
            (song_id, get_current_email())
        )
        if rows:
            logger.info(f"Song {song_id} deleted")
        return len(rows) > 0

    def record_play(self, song_id: UUID) -> Song:
        """
        Increment a song's play count.

        Raises:
            NotFoundError: If the song does not exist for this identity
        """
        rows = self.postgres.execute_returning(
            """
            UPDATE songs
            SET plays = plays + 1
            WHERE id = %s AND user_email = %s
            RETURNING *
            """,
            (song_id, get_current_email())
        )
        if not rows:
            raise NotFoundError(f"Song {song_id} not found")

        return Song.model_validate(rows[0])
