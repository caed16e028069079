"""Song library routes. All require an authenticated session."""

from uuid import UUID

from fastapi import APIRouter, Query

from api.base import success_response
from core.exceptions import NotFoundError
from core.models import SongCreate
from core.services.media_service import MediaService


def create_songs_router(media_service: MediaService) -> APIRouter:
    router = APIRouter(tags=["songs"])

    @router.get("/songs")
    async def list_songs(limit: int = Query(100, ge=1, le=500)):
        songs = media_service.list_songs(limit)
        return success_response(
            [s.model_dump(mode="json") for s in songs]
        ).model_dump(mode="json")

    @router.post("/songs")
    async def create_song(body: SongCreate):
        song = media_service.create(body)
        return success_response(song.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/songs/{song_id}")
    async def get_song(song_id: UUID):
        song = media_service.get_by_id(song_id)
        if song is None:
            raise NotFoundError(f"Song {song_id} not found")
        return success_response(song.model_dump(mode="json")).model_dump(mode="json")

    @router.delete("/songs/{song_id}")
    async def delete_song(song_id: UUID):
        if not media_service.delete(song_id):
            raise NotFoundError(f"Song {song_id} not found")
        return success_response({"deleted": True}).model_dump(mode="json")

    @router.post("/songs/{song_id}/play")
    async def play_song(song_id: UUID):
        song = media_service.record_play(song_id)
        return success_response(song.model_dump(mode="json")).model_dump(mode="json")

    return router
