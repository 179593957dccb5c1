from fastapi import APIRouter, Depends, Path, status

from vidpeer.api.v1.dependencies import (
    get_access_token_from_bearer,
    get_auth_service,
    get_pod_service,
)
from vidpeer.features.authentication.services import AuthService
from vidpeer.features.pods.schemas import PodCreateIn, PodListOut, PodOut
from vidpeer.features.pods.services import PodService

router = APIRouter(
    prefix="/pods",
    tags=["pods"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Lister les nœuds amis", response_model=PodListOut)
def list_pods(svc: PodService = Depends(get_pod_service)):
    return svc.list()


@router.post(
    "",
    summary="Ajouter un nœud ami (admin)",
    status_code=status.HTTP_201_CREATED,
    response_model=PodOut,
)
def add_pod(
    payload: PodCreateIn,
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
    svc: PodService = Depends(get_pod_service),
):
    auth_svc.require_admin(access_token=access_token)
    return svc.add(payload.url)


@router.delete(
    "/{pod_id}",
    summary="Retirer un nœud ami (admin)",
    status_code=status.HTTP_204_NO_CONTENT,
)
def remove_pod(
    pod_id: int = Path(..., ge=1),
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
    svc: PodService = Depends(get_pod_service),
):
    auth_svc.require_admin(access_token=access_token)
    svc.remove(pod_id)
    return None
