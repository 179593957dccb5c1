from typing import List, Optional
from sqlmodel import Field
from sqlalchemy import Column, JSON

from .base import BaseModelDB


class Video(BaseModelDB, table=True):
    """
    Vidéo publiée par ce nœud (name_path renseigné) ou miroir d'une vidéo d'un pair.

    Jamais mise à jour : créée par la publication (ou l'annonce d'un pair),
    supprimée par la rétractation.
    """
    name: str = Field(index=True, description="Nom affiché")
    description: str = Field(default="", description="Description libre")
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    author: str = Field(index=True, description="Nom d'utilisateur de l'auteur")
    duration: int = Field(default=0, description="Durée en secondes")
    pod_url: str = Field(index=True, description="URL du nœud d'origine")
    magnet_uri: str = Field(index=True, min_length=1, description="Référence de diffusion (magnet)")
    name_path: Optional[str] = Field(default=None, description="Fichier local, uniquement si la vidéo nous appartient")
    thumbnail: str = Field(description="Fichier miniature local, ou URL absolue pour un miroir")

    @property
    def owned(self) -> bool:
        return bool(self.name_path)
