from typing import List, Optional
from sqlmodel import select

from vidpeer.db.repositories.base import BaseRepository
from vidpeer.db.models.pods import Pod


class PodRepository(BaseRepository[Pod]):
    """Nœuds amis."""
    model = Pod

    def get_by_url(self, url: str) -> Optional[Pod]:
        return self.session.exec(select(self.model).where(self.model.url == url)).first()

    def list_urls(self) -> List[str]:
        return list(self.session.exec(select(self.model.url).order_by(self.model.id)).all())
