from fastapi import HTTPException, status

from vidpeer.db.models.users import User
from vidpeer.db.repositories.users import UserRepository
from vidpeer.security.password import verify_password, hash_password
from vidpeer.security.tokens import JWTError, JWTSettings, create_access_token, decode_token
from vidpeer.features.authentication.schemas import SignUpIn, SignInIn, TokenOut

class AuthService:
    """
    Service d'authentification : orchestre le repository utilisateurs + tokens.
    Ne contient pas d'accès SQL direct et lève des HTTPException propres.
    """

    def __init__(self, *, user_repo: UserRepository, jwt_settings: JWTSettings):
        self.user_repo = user_repo
        self.jwt = jwt_settings

    # ---------- Sign up ----------
    def sign_up(self, payload: SignUpIn) -> User:
        if self.user_repo.get_by_username(payload.username):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )
        # Le premier compte du nœud en est l'administrateur
        return self.user_repo.create(
            username=payload.username,
            hashed_password=hash_password(payload.password),
            admin=self.user_repo.count() == 0,
        )

    # ---------- Sign in ----------
    def sign_in(self, payload: SignInIn) -> TokenOut:
        user = self.user_repo.get_by_username(payload.username)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si l'utilisateur existe
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )
        return TokenOut(
            access_token=create_access_token(user_id=user.id, username=user.username, settings=self.jwt),
            expires_in=int(self.jwt.access_ttl.total_seconds()),
        )

    # ---------- Current user depuis access token ----------
    def get_current_user(self, *, access_token: str) -> User:
        try:
            decoded = decode_token(access_token, self.jwt)
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

        if decoded.get("typ") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

        user = self.user_repo.get(int(decoded["sub"]))
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    def require_admin(self, *, access_token: str) -> User:
        user = self.get_current_user(access_token=access_token)
        if not user.admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user
