import asyncio
import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from fastapi import HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from vidpeer.core.config import Settings
from vidpeer.db.repositories.videos import VideoRepository
from vidpeer.features.videos.formatting import format_video, format_videos, video_exists
from vidpeer.features.videos.pipeline import PublishPipeline, PublishResult, RetractPipeline
from vidpeer.features.videos.schemas import (
    PublishRequest,
    RetractRequest,
    VideoListOut,
    VideoOut,
)
from vidpeer.utils.media_files import build_upload_name, detect_video_mime

# filetype n'a besoin que des 261 premiers octets
HEAD_BYTES = 261
CHUNK_BYTES = 1024 * 1024

logger = logging.getLogger(__name__)


class VideoService:
    """
    Service Vidéos : réception des uploads, lectures, et délégation aux pipelines.
    Les erreurs de validation sont levées en HTTPException, celles des pipelines
    remontent telles quelles (le router les traduit).
    """

    def __init__(
        self,
        *,
        repo: VideoRepository,
        publisher: PublishPipeline,
        retractor: RetractPipeline,
        settings: Settings,
        duration_probe: Callable[[Path], int],
    ):
        self.repo = repo
        self.publisher = publisher
        self.retractor = retractor
        self.settings = settings
        self._probe = duration_probe

    # ---------- Commands ----------

    async def upload(
        self,
        file: UploadFile,
        *,
        name: str,
        description: str,
        tags: List[str],
        author: str,
    ) -> PublishResult:
        dest = await self._store_upload(file)
        published = False
        try:
            # ffprobe et le pipeline bloquent : jamais sur la boucle d'événements
            try:
                duration = await run_in_threadpool(self._probe, dest)
            except ValueError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Vidéo illisible: {e}")
            if duration > self.settings.MAX_VIDEO_DURATION:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Durée invalide (max {self.settings.MAX_VIDEO_DURATION} s)",
                )

            req = PublishRequest(
                path=dest,
                name=name,
                description=description,
                tags=tags,
                author=author,
                duration=duration,
            )
            cancelled = threading.Event()
            worker = asyncio.ensure_future(run_in_threadpool(self.publisher.publish, req, cancelled))
            try:
                result = await asyncio.shield(worker)
            except asyncio.CancelledError:
                # le thread ne s'interrompt pas : il voit le drapeau entre deux étapes
                cancelled.set()
                await asyncio.wait([worker])
                published = not worker.cancelled() and worker.exception() is None
                if published:
                    logger.warning("Upload %s cancelled after its publication completed", dest.name)
                raise
            published = True
            return result
        finally:
            # le pipeline a déjà annulé ses étapes ; reste le fichier reçu
            if not published:
                dest.unlink(missing_ok=True)

    def delete(self, video_id: int, *, username: str, is_admin: bool) -> None:
        self.retractor.retract(RetractRequest(video_id=video_id, username=username, is_admin=is_admin))

    # ---------- Queries ----------

    def list(self, *, offset: int, limit: int, sort: Optional[str]) -> VideoListOut:
        try:
            items, total = self.repo.list_sorted(offset=offset, limit=limit, sort=sort)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return format_videos(items, total, static_path=self.settings.THUMBNAILS_STATIC_PATH)

    def search(self, value: str, *, field: str, offset: int, limit: int, sort: Optional[str]) -> VideoListOut:
        try:
            items, total = self.repo.search(value, field=field, offset=offset, limit=limit, sort=sort)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return format_videos(items, total, static_path=self.settings.THUMBNAILS_STATIC_PATH)

    def get(self, video_id: int) -> Optional[VideoOut]:
        """None si la vidéo est locale mais que son fichier a disparu."""
        video = self.repo.get(video_id)
        if not video:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vidéo introuvable")
        if not video_exists(video, self.settings.UPLOADS_DIR):
            return None
        return format_video(video, static_path=self.settings.THUMBNAILS_STATIC_PATH)

    def to_out(self, result: PublishResult) -> VideoOut:
        return format_video(result.video, static_path=self.settings.THUMBNAILS_STATIC_PATH)

    # ---------- Helpers ----------

    async def _store_upload(self, file: UploadFile) -> Path:
        head = await file.read(HEAD_BYTES)
        try:
            _, ext = detect_video_mime(head)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        uploads_dir = Path(self.settings.UPLOADS_DIR)
        uploads_dir.mkdir(parents=True, exist_ok=True)
        dest = uploads_dir / build_upload_name(ext)
        max_bytes = self.settings.MAX_UPLOAD_MB * 1024 * 1024

        size = len(head)
        try:
            with dest.open("wb") as out:
                await run_in_threadpool(out.write, head)
                while True:
                    chunk = await file.read(CHUNK_BYTES)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        break
                    await run_in_threadpool(out.write, chunk)
        except BaseException:
            dest.unlink(missing_ok=True)
            raise
        if size > max_bytes:
            dest.unlink(missing_ok=True)
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Taille invalide (max {self.settings.MAX_UPLOAD_MB} MB)",
            )
        return dest
