import unittest

try:
    import jwt

    from app.config import AUTH_MODE_NOAUTH, AUTH_MODE_TOKEN
    from app.services.auth_service import create_access_token, hash_password, verify_password
    from app.services.errors import AuthenticationError
    from app.services.identity import (
        TEST_USER_EMAIL,
        FixedIdentityProvider,
        TokenIdentityProvider,
        build_identity_provider,
    )
    from app.services.session_store import session_store

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False
    AuthenticationError = Exception


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "jwt/bcrypt/sqlalchemy dependencies are not installed")
class IdentityProviderTests(unittest.TestCase):
    def test_noauth_resolves_every_request_to_one_user(self) -> None:
        provider = FixedIdentityProvider(session_store)
        first = provider.resolve(None)
        second = provider.resolve("Bearer whatever")
        self.assertEqual(first["userId"], second["userId"])
        self.assertEqual(first["email"], TEST_USER_EMAIL)
        self.assertEqual(first["displayName"], "Test User")

    def test_provider_selection(self) -> None:
        self.assertIsInstance(build_identity_provider(session_store, AUTH_MODE_NOAUTH), FixedIdentityProvider)
        self.assertIsInstance(build_identity_provider(session_store, AUTH_MODE_TOKEN), TokenIdentityProvider)

    def test_token_round_trip(self) -> None:
        user = session_store.register_user("token-founder@example.com", "s3cret-pass", "Token Founder")
        token, _ = create_access_token(user_id=user["userId"], email=user["email"])
        resolved = TokenIdentityProvider(session_store).resolve(f"Bearer {token}")
        self.assertEqual(resolved["userId"], user["userId"])

    def test_token_provider_rejects_bad_headers(self) -> None:
        provider = TokenIdentityProvider(session_store)
        for header in ("", "Token abc", "Bearer ", "Bearer not-a-jwt"):
            with self.assertRaises(AuthenticationError):
                provider.resolve(header)

    def test_token_for_deleted_user_is_rejected(self) -> None:
        token, _ = create_access_token(user_id="ghost-user", email="ghost@example.com")
        with self.assertRaises(AuthenticationError):
            TokenIdentityProvider(session_store).resolve(f"Bearer {token}")

    def test_wrong_token_type_is_rejected(self) -> None:
        token = jwt.encode({"sub": "someone", "tokenType": "refresh"}, "test-secret-key", algorithm="HS256")
        with self.assertRaises(AuthenticationError):
            TokenIdentityProvider(session_store).resolve(f"Bearer {token}")


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "jwt/bcrypt/sqlalchemy dependencies are not installed")
class PasswordTests(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("correct horse battery staple")
        self.assertTrue(verify_password("correct horse battery staple", hashed))
        self.assertFalse(verify_password("wrong", hashed))
        self.assertFalse(verify_password("anything", None))

    def test_duplicate_registration_and_bad_login(self) -> None:
        session_store.register_user("dup@example.com", "password1")
        with self.assertRaises(ValueError):
            session_store.register_user("DUP@example.com", "password2")
        with self.assertRaises(ValueError):
            session_store.authenticate_user("dup@example.com", "not-it")
        self.assertEqual(session_store.authenticate_user(" dup@example.com ", "password1")["email"], "dup@example.com")


if __name__ == "__main__":
    unittest.main()
