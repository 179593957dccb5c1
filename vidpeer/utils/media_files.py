import secrets
from typing import Dict, Tuple
import filetype


# Allow-list : MIME réel -> extension du fichier stocké
ALLOWED_VIDEO_MIME: Dict[str, str] = {
    "video/webm": "webm",
    "video/mp4": "mp4",
    "video/ogg": "ogv",
    "audio/ogg": "ogv",  # filetype ne distingue pas un conteneur Ogg vidéo
}


def detect_video_mime(head: bytes) -> Tuple[str, str]:
    """
    Détecte le type réel via 'filetype' à partir des premiers octets.
    Retourne (real_mime, extension sans point).
    Lève ValueError si le type n'est pas autorisé.
    """
    kind = filetype.guess(head)
    real_mime = kind.mime if kind else "application/octet-stream"
    if real_mime not in ALLOWED_VIDEO_MIME:
        raise ValueError(f"Type non autorisé: {real_mime}")
    return real_mime, ALLOWED_VIDEO_MIME[real_mime]


def build_upload_name(ext: str) -> str:
    """Nom aléatoire du fichier stocké : 32 caractères hexa + extension."""
    return f"{secrets.token_hex(16)}.{ext.lstrip('.')}"
