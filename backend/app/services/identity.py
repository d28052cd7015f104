import jwt

from app.config import AUTH_MODE_NOAUTH, auth_mode
from app.services.auth_service import decode_access_token
from app.services.errors import AuthenticationError

TEST_USER_EMAIL = "test@example.com"
TEST_USER_NAME = "Test User"


class TokenIdentityProvider:
    """Resolves the caller from a ``Bearer <jwt>`` authorization header."""

    def __init__(self, store) -> None:
        self._store = store

    def resolve(self, authorization: str | None) -> dict:
        if not authorization or not authorization.lower().startswith("bearer "):
            raise AuthenticationError("Missing bearer token")
        token = authorization.split(" ", 1)[1].strip()
        if not token:
            raise AuthenticationError("Missing bearer token")
        try:
            payload = decode_access_token(token)
        except jwt.PyJWTError as exc:
            raise AuthenticationError("Invalid or expired token") from exc
        user_id = str(payload.get("sub", "")).strip()
        if not user_id:
            raise AuthenticationError("Invalid token subject")
        user = self._store.get_auth_user(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return user


class FixedIdentityProvider:
    """Resolves every caller to one synthetic user, for local testing without auth."""

    def __init__(self, store, email: str = TEST_USER_EMAIL, display_name: str = TEST_USER_NAME) -> None:
        self._store = store
        self._email = email
        self._display_name = display_name

    def resolve(self, authorization: str | None) -> dict:
        return self._store.get_or_create_user(self._email, self._display_name)


def build_identity_provider(store, mode: str | None = None):
    if (mode or auth_mode()) == AUTH_MODE_NOAUTH:
        return FixedIdentityProvider(store)
    return TokenIdentityProvider(store)
