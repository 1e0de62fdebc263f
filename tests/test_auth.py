import pytest

from conftest import JWT_KEY, make_token
from tasks_api.auth import AuthenticationError, JWTClaims, JWTTokenVerifier
from tasks_api.settings import Settings


@pytest.fixture
def verifier():
    return JWTTokenVerifier(key=JWT_KEY, algorithms=["HS256"])


class TestJWTTokenVerifier:
    def test_valid_admin_token(self, verifier):
        claims = verifier.authenticate(make_token())
        assert claims.has_role("admin")
        assert not claims.has_role("nurse")

    def test_realm_access_roles(self, verifier):
        claims = verifier.authenticate(make_token(roles=(), realm_access={"roles": ["admin", "doctor"]}))
        assert claims.has_role("admin")
        assert claims.has_role("doctor")

    def test_empty_token(self, verifier):
        with pytest.raises(AuthenticationError, match="missing"):
            verifier.authenticate("")

    def test_garbage_token(self, verifier):
        with pytest.raises(AuthenticationError, match="invalid token"):
            verifier.authenticate("not-a-jwt")

    def test_expired_token(self, verifier):
        with pytest.raises(AuthenticationError, match="expired"):
            verifier.authenticate(make_token(expires_in=-30))

    def test_wrong_signing_key(self, verifier):
        with pytest.raises(AuthenticationError):
            verifier.authenticate(make_token(key="another-signing-key-0123456789abcdef"))

    def test_expiry_is_required(self, verifier):
        import jwt

        token = jwt.encode({"sub": "x", "roles": ["admin"]}, JWT_KEY, algorithm="HS256")
        with pytest.raises(AuthenticationError):
            verifier.authenticate(token)

    def test_audience_is_checked_when_configured(self):
        verifier = JWTTokenVerifier(key=JWT_KEY, algorithms=["HS256"], audience="tasks")
        assert verifier.authenticate(make_token(aud="tasks")).has_role("admin")
        with pytest.raises(AuthenticationError):
            verifier.authenticate(make_token(aud="patients"))

    def test_from_settings(self):
        settings = Settings(auth_jwt_key=JWT_KEY, auth_jwt_algorithms=["HS256"])
        assert JWTTokenVerifier.from_settings(settings).authenticate(make_token()).has_role("admin")


class TestJWTClaims:
    def test_ignores_malformed_role_claims(self):
        claims = JWTClaims({"roles": "admin", "realm_access": {"roles": "admin"}})
        assert not claims.has_role("admin")
        assert claims.roles == frozenset()

    def test_subject(self):
        assert JWTClaims({"sub": 17}).subject == "17"
        assert JWTClaims({}).subject is None
