from __future__ import annotations

from typing import Optional
from sqlmodel import select

from vidpeer.db.repositories.base import BaseRepository
from vidpeer.db.models.users import User

class UserRepository(BaseRepository[User]):
    """
    Repository pour la table User.
    Hérite du CRUD générique de BaseRepository.
    Contient uniquement les requêtes spécifiques à User.
    """
    model = User

    def get_by_username(self, username: str) -> Optional[User]:
        """Retourne un utilisateur par son nom d'utilisateur."""
        return self.session.exec(
            select(self.model).where(self.model.username == username)
        ).first()
