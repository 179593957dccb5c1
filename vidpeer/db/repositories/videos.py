from typing import Optional, Sequence, Tuple
from sqlalchemy import String, cast
from sqlmodel import col, func, select

from vidpeer.db.repositories.base import BaseRepository
from vidpeer.db.models.videos import Video


SORTABLE_FIELDS = {"name", "duration", "created_at"}
SEARCHABLE_FIELDS = {"name", "author", "pod_url", "magnet_uri", "tags"}
DEFAULT_SORT = "-created_at"


class VideoRepository(BaseRepository[Video]):
    """
    Store des vidéos (locales et miroirs).
    Pas de mise à jour : un enregistrement est inséré puis, un jour, supprimé.
    """
    model = Video

    # ---------- Helpers ----------

    def _order_by(self, sort: Optional[str]):
        sort = sort or DEFAULT_SORT
        desc = sort.startswith("-")
        field = sort.lstrip("-")
        if field not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {field}")
        column = col(getattr(self.model, field))
        return column.desc() if desc else column.asc()

    def _page(self, condition, *, offset: int, limit: int, sort: Optional[str]) -> Tuple[Sequence[Video], int]:
        stmt = select(self.model)
        count_stmt = select(func.count(self.model.id))
        if condition is not None:
            stmt = stmt.where(condition)
            count_stmt = count_stmt.where(condition)
        stmt = stmt.order_by(self._order_by(sort)).offset(offset).limit(limit)
        return self.session.exec(stmt).all(), int(self.session.exec(count_stmt).one())

    # ---------- Queries ----------

    def list_sorted(self, *, offset: int = 0, limit: int = 20, sort: Optional[str] = None) -> Tuple[Sequence[Video], int]:
        return self._page(None, offset=offset, limit=limit, sort=sort)

    def search(
        self,
        value: str,
        *,
        field: str = "name",
        offset: int = 0,
        limit: int = 20,
        sort: Optional[str] = None,
    ) -> Tuple[Sequence[Video], int]:
        if field not in SEARCHABLE_FIELDS:
            raise ValueError(f"Unsupported search field: {field}")
        column = col(getattr(self.model, field))
        if field == "tags":
            # tags est stocké en JSON : on cherche dans sa forme texte
            column = cast(column, String)
        # % et _ saisis par l'utilisateur sont cherchés tels quels
        pattern = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return self._page(column.ilike(f"%{pattern}%", escape="\\"), offset=offset, limit=limit, sort=sort)

    def get_remote(self, magnet_uri: str, pod_url: str) -> Optional[Video]:
        return self.session.exec(
            select(self.model).where(
                self.model.magnet_uri == magnet_uri,
                self.model.pod_url == pod_url,
                col(self.model.name_path).is_(None),
            )
        ).first()

    # ---------- Commands ----------

    def insert(self, **fields) -> Video:
        return self.create(**fields)

    def delete_owned(self, video_id: int) -> bool:
        """
        Supprime la vidéo uniquement si elle appartient à ce nœud (name_path renseigné).
        Retourne False si aucune ligne ne correspond.
        """
        video = self.session.exec(
            select(self.model).where(
                self.model.id == video_id,
                col(self.model.name_path).is_not(None),
            )
        ).first()
        if video is None:
            return False
        self.delete(video)
        return True

    def delete_remote(self, magnet_uri: str, pod_url: str) -> bool:
        video = self.get_remote(magnet_uri, pod_url)
        if video is None:
            return False
        self.delete(video)
        return True
