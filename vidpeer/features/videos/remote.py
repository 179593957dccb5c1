import logging

from vidpeer.db.repositories.pods import PodRepository
from vidpeer.db.repositories.videos import VideoRepository
from vidpeer.db.models.base import utcnow
from vidpeer.features.federation.schemas import RemoteAddIn, RemoteRemoveIn, RemoteVideoData, RemoteVideoRef
from vidpeer.features.videos.errors import PersistenceError

logger = logging.getLogger(__name__)


class UnknownPodError(Exception):
    pass


class RemoteVideoService:
    """
    Applique les annonces reçues des nœuds amis sur nos miroirs.
    Doublons et messages perdus sont tolérés : add est idempotent, remove d'un
    miroir absent ne fait rien.
    """

    def __init__(self, *, repo: VideoRepository, pod_repo: PodRepository):
        self.repo = repo
        self.pods = pod_repo

    def handle(self, message) -> None:
        pod_url = message.data.pod_url.rstrip("/")
        if not self.pods.get_by_url(pod_url):
            raise UnknownPodError(f"{pod_url} is not a friend")
        if isinstance(message, RemoteAddIn):
            self.add(message.data, pod_url)
        elif isinstance(message, RemoteRemoveIn):
            self.remove(message.data, pod_url)

    def add(self, data: RemoteVideoData, pod_url: str) -> None:
        if self.repo.get_remote(data.magnet_uri, pod_url):
            logger.debug("Remote video %s from %s already mirrored", data.magnet_uri, pod_url)
            return
        try:
            video = self.repo.insert(
                name=data.name,
                description=data.description,
                tags=list(data.tags),
                author=data.author,
                duration=data.duration,
                pod_url=pod_url,
                magnet_uri=data.magnet_uri,
                name_path=None,
                thumbnail=data.thumbnail_url,
                created_at=data.created_at or utcnow(),
            )
        except Exception as e:
            raise PersistenceError(f"Cannot mirror {data.magnet_uri} from {pod_url}: {e}") from e
        logger.info("Mirrored remote video %s from %s", video.id, pod_url)

    def remove(self, data: RemoteVideoRef, pod_url: str) -> None:
        try:
            removed = self.repo.delete_remote(data.magnet_uri, pod_url)
        except Exception as e:
            raise PersistenceError(f"Cannot remove mirror {data.magnet_uri} from {pod_url}: {e}") from e
        if removed:
            logger.info("Removed remote video %s (%s) from %s", data.name, data.magnet_uri, pod_url)
        else:
            logger.debug("Remote video %s from %s was not mirrored", data.magnet_uri, pod_url)
