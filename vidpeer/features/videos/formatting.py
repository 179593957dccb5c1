"""
Vue publique d'une vidéo : projection pure, sans effet de bord.
"""

import re
from pathlib import Path
from typing import Sequence

from vidpeer.db.models.videos import Video
from vidpeer.features.videos.schemas import VideoListOut, VideoOut

_SCHEME = re.compile(r"^https?://")


def strip_scheme(url: str) -> str:
    return _SCHEME.sub("", url)


def thumbnail_path(video: Video, static_path: str) -> str:
    # Les miroirs pointent déjà vers la miniature du nœud d'origine
    if _SCHEME.match(video.thumbnail):
        return video.thumbnail
    return f"{static_path.rstrip('/')}/{video.thumbnail}"


def format_video(video: Video, *, static_path: str) -> VideoOut:
    return VideoOut(
        id=video.id,
        name=video.name,
        description=video.description,
        pod_url=strip_scheme(video.pod_url),
        is_local=video.owned,
        magnet_uri=video.magnet_uri,
        author=video.author,
        duration=video.duration,
        tags=list(video.tags or []),
        thumbnail_path=thumbnail_path(video, static_path),
        created_at=video.created_at,
    )


def format_videos(videos: Sequence[Video], total: int, *, static_path: str) -> VideoListOut:
    return VideoListOut(
        total=total,
        data=[format_video(v, static_path=static_path) for v in videos],
    )


def video_exists(video: Video, uploads_dir: Path) -> bool:
    """Un miroir existe toujours ; une vidéo locale seulement si son fichier est encore là."""
    if not video.owned:
        return True
    return (Path(uploads_dir) / video.name_path).exists()
