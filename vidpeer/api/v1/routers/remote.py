from fastapi import APIRouter, Body, Depends, HTTPException, status

from vidpeer.api.v1.dependencies import get_remote_video_service
from vidpeer.features.federation.schemas import RemoteRequestIn
from vidpeer.features.videos.errors import PersistenceError
from vidpeer.features.videos.remote import RemoteVideoService, UnknownPodError

router = APIRouter(
    prefix="/remote",
    tags=["remote"],
)


@router.post(
    "/videos",
    summary="Recevoir une annonce (add / remove) d'un nœud ami",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"description": "Nœud inconnu"}},
)
def receive_remote_videos(
    message: RemoteRequestIn = Body(...),
    svc: RemoteVideoService = Depends(get_remote_video_service),
):
    try:
        svc.handle(message)
    except UnknownPodError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur de base de données")
    return None
