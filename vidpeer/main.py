"""
➡️ But : assembler toutes les pièces du puzzle.

create_app(settings) crée l'instance FastAPI et configure :

CORS, titre, version, tags, schéma OpenAPI personnalisé

les composants longue durée rangés dans app.state (engine, distributeur,
générateur de miniatures, pool d'envoi aux pairs)

les routers (/api/v1/videos, /api/v1/remote, /api/v1/pods, /api/v1/auth)

les miniatures servies en statique sur THUMBNAILS_STATIC_PATH.

🔹 Avantages :

Aucun état global : chaque test construit son application avec ses Settings.

Point unique d’exécution : uvicorn vidpeer.main:app --reload.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from vidpeer.core.config import Settings, get_settings
from vidpeer.core.logging import configure_logging
from vidpeer.core.openapi import custom_openapi
from vidpeer.db.session import build_engine, init_db
from vidpeer.utils.distribution import ContentDistributor
from vidpeer.utils.thumbnails import ThumbnailGenerator

from vidpeer.api.v1.routers import authentication, pods, remote, videos

import uvicorn

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    for directory in (settings.UPLOADS_DIR, settings.THUMBNAILS_DIR):
        Path(directory).mkdir(parents=True, exist_ok=True)
    init_db(app.state.engine)
    logger.info("Pod %s ready (db=%s)", settings.POD_URL, settings.DATABASE_URL)
    try:
        yield
    finally:
        # les annonces déjà programmées partent avant l'arrêt
        app.state.federation_executor.shutdown(wait=True)
        app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Opérations liées à l'authentification"},
            {"name": "videos", "description": "Publication, rétractation et lecture des vidéos"},
            {"name": "pods", "description": "Gestion des nœuds amis"},
            {"name": "remote", "description": "Annonces reçues des nœuds amis"},
        ],
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.distributor = ContentDistributor.from_settings(settings)
    app.state.thumbnailer = ThumbnailGenerator.from_settings(settings)
    app.state.federation_executor = ThreadPoolExecutor(
        max_workers=settings.FEDERATION_WORKERS,
        thread_name_prefix="federation",
    )

    # CORS (ajustez selon vos besoins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    # Routers
    app.include_router(authentication.router, prefix="/api/v1")
    app.include_router(videos.router, prefix="/api/v1")
    app.include_router(pods.router, prefix="/api/v1")
    app.include_router(remote.router, prefix="/api/v1")

    app.mount(
        settings.THUMBNAILS_STATIC_PATH,
        StaticFiles(directory=str(settings.THUMBNAILS_DIR), check_dir=False),
        name="thumbnails",
    )

    # Génération du schéma OpenAPI custom
    app.openapi = lambda: custom_openapi(app)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("vidpeer.main:app", host="127.0.0.1", port=9000, reload=(get_settings().ENV == "dev"))
