"""
Client de l'agent de diffusion local (seed / unseed).

L'agent est un processus externe qui rend un fichier distribuable et renvoie
un magnet URI stable. Seul son contrat HTTP compte ici :

    POST /torrents          {"path": "..."}        -> {"magnetURI": "magnet:?xt=..."}
    POST /torrents/remove   {"magnetURI": "..."}   -> 204, ou 404 si non seedé
"""

import logging
from pathlib import Path
from typing import Callable, Optional

import httpx

from vidpeer.core.config import Settings
from vidpeer.features.videos.errors import DistributionError

logger = logging.getLogger(__name__)


class ContentDistributor:
    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        client_factory: Optional[Callable[[], httpx.Client]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client_factory = client_factory or (
            lambda: httpx.Client(base_url=self.base_url, timeout=self.timeout)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentDistributor":
        return cls(base_url=settings.DISTRIBUTION_AGENT_URL, timeout=settings.DISTRIBUTION_TIMEOUT)

    def seed(self, path: Path) -> str:
        try:
            with self._client_factory() as client:
                resp = client.post("/torrents", json={"path": str(path)})
                resp.raise_for_status()
                magnet_uri = resp.json().get("magnetURI")
        except (httpx.HTTPError, ValueError) as e:
            raise DistributionError(f"Cannot seed {path}: {e}") from e

        if not magnet_uri:
            raise DistributionError(f"Distribution agent returned no magnet URI for {path}")
        logger.info("Seeding %s as %s", path, magnet_uri)
        return magnet_uri

    def unseed(self, magnet_uri: str) -> None:
        """Arrête la diffusion. Un handle déjà absent de l'agent n'est pas une erreur."""
        try:
            with self._client_factory() as client:
                resp = client.post("/torrents/remove", json={"magnetURI": magnet_uri})
                if resp.status_code == httpx.codes.NOT_FOUND:
                    logger.info("Content %s was not seeded anymore", magnet_uri)
                    return
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DistributionError(f"Cannot unseed {magnet_uri}: {e}") from e
        logger.info("Stopped seeding %s", magnet_uri)
