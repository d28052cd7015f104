import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.security import get_current_user
from app.models.auth import AuthLoginRequest, AuthRegisterRequest, AuthResponse, AuthUser
from app.services.auth_service import access_expires_in_seconds, create_access_token
from app.services.session_store import session_store

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _issue(user: dict) -> AuthResponse:
    token, _ = create_access_token(user_id=user["userId"], email=user["email"])
    return AuthResponse(
        tokenType="bearer",
        accessToken=token,
        expiresIn=access_expires_in_seconds(),
        user=AuthUser(**user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: AuthRegisterRequest) -> AuthResponse:
    try:
        user = session_store.register_user(
            email=payload.email,
            password=payload.password,
            display_name=payload.displayName,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    LOGGER.info("Registered user %s", user["userId"])
    return _issue(user)


@router.post("/login", response_model=AuthResponse)
def login(payload: AuthLoginRequest) -> AuthResponse:
    try:
        user = session_store.authenticate_user(email=payload.email, password=payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return _issue(user)


@router.get("/me", response_model=AuthUser)
def me(current_user: dict = Depends(get_current_user)) -> AuthUser:
    return AuthUser(**current_user)
