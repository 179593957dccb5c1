"""
➡️ But : Centraliser tous les paramètres configurables du nœud (DB, dossiers, agent de diffusion, fédération, JWT).

Utilise pydantic-settings pour charger automatiquement les variables d’environnement (.env, variables système…).

Un objet Settings est construit une seule fois au démarrage (create_app) puis passé
explicitement aux composants (engine, distributeur, générateur de miniatures, broadcaster).

🔹 Avantages :

Aucun état global mutable : chaque test peut construire ses propres Settings.

Facilite le passage entre environnements (dev / prod / test).
"""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from vidpeer.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "vidpeer"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"

    # URL publique de ce nœud, annoncée aux pairs
    POD_URL: str = "http://localhost:9000"

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "vidpeer.db"
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # Stockage local
    # -----------------------------
    UPLOADS_DIR: Path = Path("storage/uploads")
    THUMBNAILS_DIR: Path = Path("storage/thumbnails")
    THUMBNAILS_STATIC_PATH: str = "/static/thumbnails"
    MAX_UPLOAD_MB: int = 512
    MAX_VIDEO_DURATION: int = 120  # secondes

    # -----------------------------
    # ffmpeg
    # -----------------------------
    FFMPEG_BIN: str = "ffmpeg"
    FFPROBE_BIN: str = "ffprobe"
    FFMPEG_TIMEOUT: int = 60
    THUMBNAIL_SIZE: str = "200x110"

    # -----------------------------
    # Agent de diffusion (seed / unseed)
    # -----------------------------
    DISTRIBUTION_AGENT_URL: str = "http://127.0.0.1:9001"
    DISTRIBUTION_TIMEOUT: float = 10.0

    # -----------------------------
    # Fédération
    # -----------------------------
    FEDERATION_TIMEOUT: float = 5.0
    FEDERATION_WORKERS: int = 4

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "vidpeer"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TTL_MINUTES: int = 60

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # Pas de slash final : les URLs des pairs sont concaténées telles quelles
        object.__setattr__(self, "POD_URL", self.POD_URL.rstrip("/"))

    @property
    def jwt(self) -> JWTSettings:
        return JWTSettings(
            secret=self.JWT_SECRET_KEY,
            issuer=self.JWT_ISSUER,
            algorithm=self.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=self.ACCESS_TTL_MINUTES),
        )


@lru_cache
def get_settings() -> Settings:
    """Settings par défaut (env + .env), construits une seule fois."""
    return Settings()
