"""
Miniatures et sondage de durée via ffmpeg / ffprobe (sous-processus).
"""

import json
import logging
import secrets
import subprocess
import time
from pathlib import Path
from typing import List

from vidpeer.core.config import Settings
from vidpeer.features.videos.errors import ThumbnailError

logger = logging.getLogger(__name__)


def _run(cmd: List[str], *, timeout: int) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)


def _trim(err: str, limit: int = 1200) -> str:
    err = (err or "").strip()
    return err if len(err) <= limit else err[:limit] + "…"


class ThumbnailGenerator:
    """Extrait une image de la vidéo vers THUMBNAILS_DIR/<hex aléatoire>.png."""

    def __init__(self, *, thumbnails_dir: Path, size: str = "200x110", ffmpeg_bin: str = "ffmpeg", timeout: int = 60):
        self.thumbnails_dir = Path(thumbnails_dir)
        self.size = size
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ThumbnailGenerator":
        return cls(
            thumbnails_dir=settings.THUMBNAILS_DIR,
            size=settings.THUMBNAIL_SIZE,
            ffmpeg_bin=settings.FFMPEG_BIN,
            timeout=settings.FFMPEG_TIMEOUT,
        )

    def path_for(self, thumbnail: str) -> Path:
        return self.thumbnails_dir / thumbnail

    def generate(self, video: Path) -> str:
        """Retourne le nom du fichier miniature (relatif à THUMBNAILS_DIR)."""
        name = f"{secrets.token_hex(16)}.png"
        out = self.path_for(name)
        width, height = self.size.split("x")
        cmd = [
            self.ffmpeg_bin, "-y",
            "-ss", "0",
            "-i", str(video),
            "-frames:v", "1",
            "-vf", f"scale={width}:{height}",
            str(out),
        ]
        t0 = time.time()
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            proc = _run(cmd, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as e:
            raise ThumbnailError(f"Cannot run ffmpeg on {video}: {e}") from e

        elapsed = time.time() - t0
        if proc.returncode != 0 or not out.exists():
            logger.error(
                "thumbnail fail path=%s code=%s elapsed=%.3fs stderr=%r",
                video, proc.returncode, elapsed, _trim(proc.stderr),
            )
            out.unlink(missing_ok=True)
            raise ThumbnailError(_trim(proc.stderr) or f"ffmpeg thumbnail failed for {video}")

        logger.info("thumbnail end path=%s out=%s elapsed=%.3fs", video, out, elapsed)
        return name

    def remove(self, thumbnail: str) -> None:
        self.path_for(thumbnail).unlink(missing_ok=True)


def probe_duration(video: Path, *, ffprobe_bin: str = "ffprobe", timeout: int = 60) -> int:
    """
    Durée de la vidéo en secondes (arrondie à l'entier inférieur).
    Lève ValueError si ffprobe ne sait pas lire le fichier.
    """
    cmd = [
        ffprobe_bin, "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        str(video),
    ]
    try:
        proc = _run(cmd, timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        raise ValueError(f"Cannot probe {video}: {e}") from e
    if proc.returncode != 0:
        raise ValueError(_trim(proc.stderr) or f"ffprobe failed for {video}")
    try:
        return int(float(json.loads(proc.stdout)["format"]["duration"]))
    except (KeyError, TypeError, json.JSONDecodeError) as e:
        raise ValueError(f"No duration for {video}") from e
