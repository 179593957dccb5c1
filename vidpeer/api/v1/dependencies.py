"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Les composants longue durée (settings, distributeur, générateur de miniatures,
pool d'envoi aux pairs) sont créés par create_app et rangés dans app.state ;
les repositories et services sont construits par requête.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Les tests remplacent un composant via app.dependency_overrides.
"""

from functools import partial
from pathlib import Path
from typing import Callable

from fastapi import Depends, HTTPException, Query, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from vidpeer.core.config import Settings
from vidpeer.db.session import get_session

from vidpeer.db.repositories.users import UserRepository
from vidpeer.db.repositories.videos import VideoRepository
from vidpeer.db.repositories.pods import PodRepository

from vidpeer.features.authentication.services import AuthService
from vidpeer.features.federation.broadcaster import FederationBroadcaster
from vidpeer.features.pods.services import PodService
from vidpeer.features.videos.pipeline import PublishPipeline, RetractPipeline
from vidpeer.features.videos.remote import RemoteVideoService
from vidpeer.features.videos.services import VideoService
from vidpeer.utils.distribution import ContentDistributor
from vidpeer.utils.thumbnails import ThumbnailGenerator, probe_duration


def pagination(
    page: int = Query(1, ge=1, description="Numéro de page", examples=[1]),
    size: int = Query(20, ge=1, le=100, description="Taille de page", examples=[20]),
):
    offset = (page - 1) * size
    return {"offset": offset, "limit": size}


# -----------------------------
# Composants de l'application
# -----------------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_distributor(request: Request) -> ContentDistributor:
    return request.app.state.distributor

def get_thumbnailer(request: Request) -> ThumbnailGenerator:
    return request.app.state.thumbnailer


# -----------------------------
# Repositories
# -----------------------------
def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)

def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)

def get_pod_repository(session: Session = Depends(get_session)) -> PodRepository:
    return PodRepository(session)


# -----------------------------
# Auth
# -----------------------------
def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(user_repo=user_repo, jwt_settings=settings.jwt)


# -----------------------------
# Fédération
# -----------------------------
def get_broadcaster(
    request: Request,
    pod_repo: PodRepository = Depends(get_pod_repository),
    settings: Settings = Depends(get_settings),
) -> FederationBroadcaster:
    return FederationBroadcaster(
        origin_url=settings.POD_URL,
        thumbnails_static_path=settings.THUMBNAILS_STATIC_PATH,
        pod_urls=pod_repo.list_urls,
        executor=request.app.state.federation_executor,
        timeout=settings.FEDERATION_TIMEOUT,
    )


# -----------------------------
# Pipelines & services
# -----------------------------
def get_publish_pipeline(
    video_repo: VideoRepository = Depends(get_video_repository),
    distributor: ContentDistributor = Depends(get_distributor),
    thumbnailer: ThumbnailGenerator = Depends(get_thumbnailer),
    broadcaster: FederationBroadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings),
) -> PublishPipeline:
    return PublishPipeline(
        distributor=distributor,
        thumbnailer=thumbnailer,
        repo=video_repo,
        broadcaster=broadcaster,
        pod_url=settings.POD_URL,
    )

def get_retract_pipeline(
    video_repo: VideoRepository = Depends(get_video_repository),
    distributor: ContentDistributor = Depends(get_distributor),
    thumbnailer: ThumbnailGenerator = Depends(get_thumbnailer),
    broadcaster: FederationBroadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings),
) -> RetractPipeline:
    return RetractPipeline(
        distributor=distributor,
        thumbnailer=thumbnailer,
        repo=video_repo,
        broadcaster=broadcaster,
        uploads_dir=settings.UPLOADS_DIR,
    )

def get_duration_probe(settings: Settings = Depends(get_settings)) -> Callable[[Path], int]:
    return partial(probe_duration, ffprobe_bin=settings.FFPROBE_BIN, timeout=settings.FFMPEG_TIMEOUT)

def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    publisher: PublishPipeline = Depends(get_publish_pipeline),
    retractor: RetractPipeline = Depends(get_retract_pipeline),
    duration_probe: Callable[[Path], int] = Depends(get_duration_probe),
    settings: Settings = Depends(get_settings),
) -> VideoService:
    return VideoService(
        repo=video_repo,
        publisher=publisher,
        retractor=retractor,
        settings=settings,
        duration_probe=duration_probe,
    )

def get_remote_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    pod_repo: PodRepository = Depends(get_pod_repository),
) -> RemoteVideoService:
    return RemoteVideoService(repo=video_repo, pod_repo=pod_repo)

def get_pod_service(pod_repo: PodRepository = Depends(get_pod_repository)) -> PodService:
    return PodService(pod_repo)


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=True)

def get_access_token_from_bearer(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")
    return credentials.credentials
