import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List

from pydantic import BaseModel


# ---------- Requêtes internes aux pipelines ----------

@dataclass(frozen=True)
class PublishRequest:
    """Fichier déjà validé + métadonnées descriptives. Jamais persisté."""
    path: Path
    name: str
    author: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    duration: int = 0


@dataclass(frozen=True)
class RetractRequest:
    video_id: int
    username: str
    is_admin: bool = False


# ---------- Outputs ----------

class VideoOut(BaseModel):
    id: int
    name: str
    description: str
    pod_url: str
    is_local: bool
    magnet_uri: str
    author: str
    duration: int
    tags: List[str]
    thumbnail_path: str
    created_at: datetime

class VideoListOut(BaseModel):
    total: int
    data: List[VideoOut]


# ---------- Validation des uploads ----------

MAX_TAGS = 3
TAG_PATTERN = re.compile(r"^[A-Za-z0-9]{2,10}$")

def validate_tags(tags: List[str]) -> List[str]:
    """Au plus 3 tags alphanumériques de 2 à 10 caractères. Lève ValueError sinon."""
    tags = [t.strip() for t in tags if t and t.strip()]
    if len(tags) > MAX_TAGS:
        raise ValueError(f"Trop de tags (max {MAX_TAGS})")
    for tag in tags:
        if not TAG_PATTERN.match(tag):
            raise ValueError(f"Tag invalide: {tag}")
    return tags
