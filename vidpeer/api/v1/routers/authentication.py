from fastapi import APIRouter, Depends, status

from vidpeer.api.v1.dependencies import (
    get_auth_service,
    get_access_token_from_bearer,
)
from vidpeer.features.authentication.services import AuthService
from vidpeer.features.authentication.schemas import SignUpIn, SignInIn, TokenOut
from vidpeer.features.users.schemas import UserOut  # pour /me & sign-up

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Sign-up
# -----------------------------
@router.post(
    "/sign-up",
    summary="Créer un compte",
    description="Le premier compte créé sur le nœud est administrateur.",
    status_code=status.HTTP_201_CREATED,
    response_model=UserOut,
)
def sign_up(payload: SignUpIn, svc: AuthService = Depends(get_auth_service)):
    return svc.sign_up(payload)

# -----------------------------
# Sign-in
# -----------------------------
@router.post(
    "/sign-in",
    summary="Se connecter",
    response_model=TokenOut,
)
def sign_in(payload: SignInIn, svc: AuthService = Depends(get_auth_service)):
    return svc.sign_in(payload)

# -----------------------------
# Me
# -----------------------------
@router.get("/me", summary="Utilisateur courant", response_model=UserOut)
def me(
    access_token: str = Depends(get_access_token_from_bearer),
    svc: AuthService = Depends(get_auth_service),
):
    return svc.get_current_user(access_token=access_token)
