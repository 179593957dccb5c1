from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, Request, Response, UploadFile, status

from vidpeer.api.v1.dependencies import (
    get_access_token_from_bearer,
    get_auth_service,
    get_video_service,
    pagination,
)
from vidpeer.features.authentication.services import AuthService
from vidpeer.features.videos.errors import (
    DistributionError,
    NotFoundError,
    NotOwnedError,
    PersistenceError,
    ThumbnailError,
    VideoPipelineError,
)
from vidpeer.features.videos.schemas import VideoListOut, VideoOut, validate_tags
from vidpeer.features.videos.services import VideoService

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)


def _to_http(e: VideoPipelineError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, NotOwnedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, DistributionError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Erreur de diffusion: {e}")
    if isinstance(e, ThumbnailError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Miniature impossible: {e}")
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur de base de données")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get(
    "",
    summary="Lister les vidéos (locales et miroirs)",
    response_model=VideoListOut,
)
def list_videos(
    page=Depends(pagination),
    sort: Optional[str] = Query(None, description="name | duration | created_at, préfixe '-' = décroissant"),
    svc: VideoService = Depends(get_video_service),
):
    return svc.list(offset=page["offset"], limit=page["limit"], sort=sort)


@router.post(
    "",
    summary="Publier une vidéo (seed → miniature → DB → annonce aux pairs)",
    description=(
        "En cas d'échec, la diffusion et la miniature sont annulées avant de répondre. "
        "Si l'annonce aux pairs n'a pas pu partir, la vidéo est tout de même publiée "
        "et l'en-tête `X-Federation` vaut `degraded`."
    ),
    status_code=status.HTTP_201_CREATED,
    response_model=VideoOut,
)
async def publish_video(
    request: Request,
    response: Response,
    videofile: UploadFile = File(...),
    name: str = Form(..., min_length=1, max_length=50),
    description: str = Form("", max_length=250),
    tags: List[str] = Form([]),
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
    svc: VideoService = Depends(get_video_service),
):
    user = auth_svc.get_current_user(access_token=access_token)
    try:
        tags = validate_tags(tags)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        result = await svc.upload(videofile, name=name, description=description, tags=tags, author=user.username)
    except VideoPipelineError as e:
        raise _to_http(e)

    response.headers["Location"] = str(request.url_for("get_video", video_id=result.video.id))
    response.headers["X-Federation"] = "dispatched" if result.announced else "degraded"
    return svc.to_out(result)


@router.get(
    "/search/{value}",
    summary="Rechercher des vidéos",
    response_model=VideoListOut,
)
def search_videos(
    value: str = Path(..., min_length=1),
    field: str = Query("name", description="name | author | pod_url | magnet_uri | tags"),
    sort: Optional[str] = Query(None),
    page=Depends(pagination),
    svc: VideoService = Depends(get_video_service),
):
    return svc.search(value, field=field, offset=page["offset"], limit=page["limit"], sort=sort)


@router.get(
    "/{video_id}",
    summary="Détail d'une vidéo",
    response_model=VideoOut,
    responses={204: {"description": "Vidéo locale dont le fichier a disparu"}},
)
def get_video(
    video_id: int = Path(..., ge=1),
    svc: VideoService = Depends(get_video_service),
):
    video = svc.get(video_id)
    if video is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return video


@router.delete(
    "/{video_id}",
    summary="Retirer une vidéo (unseed, DB, disque, annonce aux pairs)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Supprimée"},
        401: {"description": "Non authentifié"},
        403: {"description": "Vidéo d'un autre nœud ou d'un autre auteur"},
        404: {"description": "Introuvable"},
    },
)
def delete_video(
    video_id: int = Path(..., ge=1),
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
    svc: VideoService = Depends(get_video_service),
):
    user = auth_svc.get_current_user(access_token=access_token)
    try:
        svc.delete(video_id, username=user.username, is_admin=user.admin)
    except VideoPipelineError as e:
        raise _to_http(e)
    return None
