import logging

from fastapi import HTTPException, status

from vidpeer.db.models.pods import Pod
from vidpeer.db.repositories.pods import PodRepository
from vidpeer.features.pods.schemas import PodListOut, PodOut

logger = logging.getLogger(__name__)


class PodService:
    def __init__(self, repo: PodRepository):
        self.repo = repo

    def list(self) -> PodListOut:
        items = self.repo.list(offset=0, limit=1000)
        return PodListOut(items=[PodOut.model_validate(p) for p in items], total=self.repo.count())

    def add(self, url: str) -> Pod:
        url = url.rstrip("/")
        if self.repo.get_by_url(url):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Pod already a friend")
        pod = self.repo.create(url=url)
        logger.info("Pod %s added to friends", url)
        return pod

    def remove(self, pod_id: int) -> None:
        pod = self.repo.get(pod_id)
        if not pod:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pod not found")
        url = pod.url
        self.repo.delete(pod)
        logger.info("Pod %s removed from friends", url)
