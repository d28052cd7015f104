from fastapi import Header, HTTPException, status

from app.services.errors import AuthenticationError
from app.services.identity import build_identity_provider
from app.services.session_store import session_store


def get_current_user(authorization: str = Header(default="")) -> dict:
    provider = build_identity_provider(session_store)
    try:
        return provider.resolve(authorization)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
