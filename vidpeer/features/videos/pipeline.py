"""
➡️ But : Orchestrer la publication et la rétractation d'une vidéo.

PublishPipeline : seed -> miniature -> insertion -> annonce aux pairs.
Chaque étape terminée enregistre son action d'annulation ; si une étape
suivante échoue (ou si l'appel est interrompu), les annulations sont jouées
dans l'ordre inverse avant de relancer l'erreur. L'appelant peut aussi lever le
drapeau `cancelled`, consulté entre les étapes (insertion comprise). L'annonce n'annule rien :
son échec donne un succès dégradé (PublishResult.announced = False).

RetractPipeline : lecture -> contrôle de propriété -> unseed -> suppression
-> nettoyage disque -> annonce. Seules la lecture, la propriété et la
suppression en base sont fatales.

Aucun verrou : les composants feuilles sont appelés directement, les appels
concurrents sur des vidéos différentes sont indépendants.
"""

import enum
import logging
import threading
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Type, TypeVar

from vidpeer.db.models.videos import Video
from vidpeer.db.repositories.videos import VideoRepository
from vidpeer.features.federation.broadcaster import FederationBroadcaster
from vidpeer.features.videos.errors import (
    DistributionError,
    NotFoundError,
    NotOwnedError,
    PersistenceError,
    PublishCancelledError,
    ThumbnailError,
    VideoPipelineError,
)
from vidpeer.features.videos.schemas import PublishRequest, RetractRequest
from vidpeer.utils.distribution import ContentDistributor
from vidpeer.utils.thumbnails import ThumbnailGenerator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PublishStage(str, enum.Enum):
    SEEDING = "seeding"
    THUMBNAILING = "thumbnailing"
    PERSISTING = "persisting"
    ANNOUNCING = "announcing"
    DONE = "done"


@dataclass
class PublishResult:
    video: Video
    announced: bool
    announce_error: Optional[str] = None


def _run_step(error_cls: Type[VideoPipelineError], fn: Callable[..., T], *args) -> T:
    """Exécute une étape ; toute erreur non typée est étiquetée avec error_cls."""
    try:
        return fn(*args)
    except error_cls:
        raise
    except Exception as e:
        raise error_cls(str(e) or e.__class__.__name__) from e


class PublishPipeline:
    def __init__(
        self,
        *,
        distributor: ContentDistributor,
        thumbnailer: ThumbnailGenerator,
        repo: VideoRepository,
        broadcaster: FederationBroadcaster,
        pod_url: str,
    ):
        self.distributor = distributor
        self.thumbnailer = thumbnailer
        self.repo = repo
        self.broadcaster = broadcaster
        self.pod_url = pod_url

    def publish(self, req: PublishRequest, cancelled: Optional[threading.Event] = None) -> PublishResult:
        """
        `cancelled` est consulté entre les étapes : une fois levé, les étapes
        déjà faites sont annulées et PublishCancelledError remonte.
        """
        compensations: List[Tuple[str, Callable[[], None]]] = []
        stage = PublishStage.SEEDING
        try:
            magnet_uri = _run_step(DistributionError, self.distributor.seed, req.path)
            if not magnet_uri:
                raise DistributionError(f"Empty content handle for {req.path}")
            compensations.append(("unseed", partial(self.distributor.unseed, magnet_uri)))
            self._check_cancelled(cancelled, req)

            stage = PublishStage.THUMBNAILING
            thumbnail = _run_step(ThumbnailError, self.thumbnailer.generate, req.path)
            compensations.append(("remove thumbnail", partial(self.thumbnailer.remove, thumbnail)))
            self._check_cancelled(cancelled, req)

            stage = PublishStage.PERSISTING
            video = _run_step(PersistenceError, self._insert, req, magnet_uri, thumbnail)
            compensations.append(("delete record", partial(self.repo.delete_owned, video.id)))
            self._check_cancelled(cancelled, req)
        except BaseException as e:
            logger.error("Cannot publish %s (failed while %s): %s", req.path, stage.value, e)
            self._compensate(compensations)
            raise

        stage = PublishStage.ANNOUNCING
        try:
            pods = self.broadcaster.announce(video)
        except Exception as e:
            # La vidéo est publiée localement ; les pairs seront désynchronisés
            logger.warning("Video %s published but not announced to friends: %s", video.id, e)
            return PublishResult(video=video, announced=False, announce_error=str(e))

        logger.info("Video %s published (%s), announced to %d pod(s)", video.id, video.magnet_uri, pods)
        return PublishResult(video=video, announced=True)

    def _insert(self, req: PublishRequest, magnet_uri: str, thumbnail: str) -> Video:
        return self.repo.insert(
            name=req.name,
            description=req.description,
            tags=list(req.tags),
            author=req.author,
            duration=req.duration,
            pod_url=self.pod_url,
            magnet_uri=magnet_uri,
            name_path=req.path.name,
            thumbnail=thumbnail,
        )

    @staticmethod
    def _check_cancelled(cancelled: Optional[threading.Event], req: PublishRequest) -> None:
        if cancelled is not None and cancelled.is_set():
            raise PublishCancelledError(f"Publication of {req.path} cancelled")

    @staticmethod
    def _compensate(compensations: List[Tuple[str, Callable[[], None]]]) -> None:
        for label, undo in reversed(compensations):
            try:
                undo()
            except Exception:
                logger.exception("Compensation '%s' failed, artifact left behind", label)
            else:
                logger.info("Compensation '%s' done", label)


class RetractPipeline:
    def __init__(
        self,
        *,
        distributor: ContentDistributor,
        thumbnailer: ThumbnailGenerator,
        repo: VideoRepository,
        broadcaster: FederationBroadcaster,
        uploads_dir: Path,
    ):
        self.distributor = distributor
        self.thumbnailer = thumbnailer
        self.repo = repo
        self.broadcaster = broadcaster
        self.uploads_dir = Path(uploads_dir)

    def retract(self, req: RetractRequest) -> None:
        video = _run_step(PersistenceError, self.repo.get, req.video_id)
        if video is None:
            raise NotFoundError(f"Video {req.video_id} not found")
        if not video.owned:
            raise NotOwnedError(f"Video {req.video_id} belongs to {video.pod_url}")
        if video.author != req.username and not req.is_admin:
            raise NotOwnedError(f"Video {req.video_id} belongs to {video.author}")

        # l'instance ORM n'est plus lisible une fois supprimée
        name, magnet_uri = video.name, video.magnet_uri
        name_path, thumbnail = video.name_path, video.thumbnail

        try:
            self.distributor.unseed(magnet_uri)
        except Exception as e:
            logger.warning("Cannot unseed %s, removing video %s anyway: %s", magnet_uri, req.video_id, e)

        deleted = _run_step(PersistenceError, self.repo.delete_owned, req.video_id)
        if not deleted:
            raise PersistenceError(f"Video {req.video_id} could not be deleted from the store")

        self._remove_from_disk(req.video_id, name_path, thumbnail)

        try:
            self.broadcaster.retract(name, magnet_uri)
        except Exception as e:
            logger.warning("Video %s removed but retraction not announced to friends: %s", req.video_id, e)

        logger.info("Video %s (%s) retracted", req.video_id, magnet_uri)

    def _remove_from_disk(self, video_id: int, name_path: str, thumbnail: str) -> None:
        try:
            (self.uploads_dir / name_path).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Cannot remove video file of %s: %s", video_id, e)
        try:
            self.thumbnailer.remove(thumbnail)
        except OSError as e:
            logger.error("Cannot remove thumbnail of %s: %s", video_id, e)
