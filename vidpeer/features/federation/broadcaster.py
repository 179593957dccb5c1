"""
Annonce / rétractation des vidéos locales auprès des nœuds amis.

Les envois partent dans un pool de threads partagé : announce() et retract()
rendent la main dès que les envois sont programmés, sans attendre les pairs.
Un pair injoignable est journalisé puis oublié ; seul l'échec de la
programmation elle-même remonte (FederationError).
"""

import logging
from concurrent.futures import Executor, Future
from typing import Callable, Optional, Sequence

import httpx
from pydantic import BaseModel

from vidpeer.db.models.videos import Video
from vidpeer.features.federation.schemas import (
    RemoteAddIn,
    RemoteRemoveIn,
    RemoteVideoData,
    RemoteVideoRef,
)
from vidpeer.features.videos.errors import FederationError
from vidpeer.features.videos.formatting import thumbnail_path

logger = logging.getLogger(__name__)

REMOTE_VIDEOS_PATH = "/api/v1/remote/videos"


class FederationBroadcaster:
    def __init__(
        self,
        *,
        origin_url: str,
        thumbnails_static_path: str,
        pod_urls: Callable[[], Sequence[str]],
        executor: Executor,
        timeout: float = 5.0,
        client_factory: Optional[Callable[[], httpx.Client]] = None,
    ):
        self.origin_url = origin_url.rstrip("/")
        self.thumbnails_static_path = thumbnails_static_path
        self._pod_urls = pod_urls
        self._executor = executor
        self.timeout = timeout
        self._client_factory = client_factory or (lambda: httpx.Client(timeout=self.timeout))

    # ---------- Messages ----------

    def build_add_message(self, video: Video) -> RemoteAddIn:
        return RemoteAddIn(
            data=RemoteVideoData(
                name=video.name,
                description=video.description,
                magnet_uri=video.magnet_uri,
                author=video.author,
                duration=video.duration,
                tags=list(video.tags or []),
                created_at=video.created_at,
                pod_url=self.origin_url,
                thumbnail_url=self.origin_url + thumbnail_path(video, self.thumbnails_static_path),
            )
        )

    def build_remove_message(self, name: str, magnet_uri: str) -> RemoteRemoveIn:
        return RemoteRemoveIn(data=RemoteVideoRef(name=name, magnet_uri=magnet_uri, pod_url=self.origin_url))

    # ---------- API ----------

    def announce(self, video: Video) -> int:
        """Programme l'annonce de `video` ; retourne le nombre de pairs visés."""
        try:
            message = self.build_add_message(video)
        except ValueError as e:
            raise FederationError(f"Cannot build announce for video {video.id}: {e}") from e
        return self._dispatch(message)

    def retract(self, name: str, magnet_uri: str) -> int:
        return self._dispatch(self.build_remove_message(name, magnet_uri))

    # ---------- Envoi ----------

    def _dispatch(self, message: BaseModel) -> int:
        try:
            urls = list(self._pod_urls())
        except Exception as e:
            raise FederationError(f"Cannot list friend pods: {e}") from e

        payload = message.model_dump(mode="json")
        for url in urls:
            try:
                future = self._executor.submit(self._send, url, payload)
            except RuntimeError as e:
                # pool arrêté (shutdown en cours)
                raise FederationError(f"Cannot dispatch to {url}: {e}") from e
            future.add_done_callback(self._log_unexpected)
        logger.info("Dispatched %s message to %d pod(s)", payload["type"], len(urls))
        return len(urls)

    def _send(self, pod_url: str, payload: dict) -> None:
        endpoint = pod_url.rstrip("/") + REMOTE_VIDEOS_PATH
        try:
            with self._client_factory() as client:
                resp = client.post(endpoint, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Pod %s did not accept %s message: %s", pod_url, payload["type"], e)
            return
        logger.debug("Pod %s accepted %s message", pod_url, payload["type"])

    @staticmethod
    def _log_unexpected(future: Future) -> None:
        if future.cancelled():
            return
        err = future.exception()
        if err is not None:
            logger.error("Unexpected error while sending to a pod: %r", err)
