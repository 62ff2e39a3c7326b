import base64
import json
from datetime import timedelta
from types import SimpleNamespace

import pytest
from jose import jwt

from clinic_api.core.exceptions import AuthenticationError, ErrorKind, TokenRejection, ValidationError
from clinic_api.core.security import (
    DEFAULT_BCRYPT_ROUNDS, PasswordHasher, TokenService, UserRole, parse_duration
)

SECRET = "unit-test-secret"

identity = SimpleNamespace(id="8a6e0804-2bd0-4672-b79d-d97027f9071a", email="alice@x.com", role=UserRole.PATIENT)


@pytest.fixture
def fast_hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens():
    return TokenService(SECRET)


def _tamper_payload(token, **claims):
    header, payload, signature = token.split(".")
    padded = payload + "=" * (-len(payload) % 4)
    data = json.loads(base64.urlsafe_b64decode(padded))
    data.update(claims)
    forged = base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")
    return ".".join([header, forged, signature])


class TestPasswordHasher:

    def test_verify_matches_plain_password(self, fast_hasher):
        hashed = fast_hasher.hash("secret1")
        assert hashed != "secret1"
        assert fast_hasher.verify("secret1", hashed)

    def test_verify_rejects_other_password(self, fast_hasher):
        hashed = fast_hasher.hash("secret1")
        assert not fast_hasher.verify("secret2", hashed)

    def test_hash_is_salted(self, fast_hasher):
        first = fast_hasher.hash("secret1")
        second = fast_hasher.hash("secret1")
        assert first != second
        assert fast_hasher.verify("secret1", first)
        assert fast_hasher.verify("secret1", second)

    @pytest.mark.parametrize("stored", ["", None, "not-a-hash", "$2b$10$short"])
    def test_malformed_hash_fails_closed(self, fast_hasher, stored):
        assert fast_hasher.verify("secret1", stored) is False

    def test_hash_refuses_password_over_72_bytes(self, fast_hasher):
        with pytest.raises(ValidationError):
            fast_hasher.hash("a" * 73)

    def test_longer_password_with_same_prefix_does_not_verify(self, fast_hasher):
        hashed = fast_hasher.hash("a" * 72)
        assert fast_hasher.verify("a" * 72, hashed)
        assert not fast_hasher.verify("a" * 72 + "different", hashed)

    def test_default_cost_factor(self):
        hasher = PasswordHasher()
        assert hasher.rounds == DEFAULT_BCRYPT_ROUNDS == 10
        assert hasher.hash("secret1").startswith("$2b$10$")


class TestTokenService:

    def test_issued_token_verifies(self, tokens):
        payload = tokens.verify(tokens.issue(identity))
        assert payload.sub == identity.id
        assert payload.email == identity.email
        assert payload.role == "patient"
        assert payload.exp > payload.iat

    def test_default_lifetime_is_seven_days(self, tokens):
        payload = tokens.verify(tokens.issue(identity))
        assert payload.exp - payload.iat == int(timedelta(days=7).total_seconds())

    def test_expired_token(self):
        expired = TokenService(SECRET, expires_delta=timedelta(seconds=-1)).issue(identity)
        with pytest.raises(AuthenticationError) as exc_info:
            TokenService(SECRET).verify(expired)
        assert exc_info.value.reason is TokenRejection.EXPIRED
        assert exc_info.value.kind is ErrorKind.AUTHENTICATION
        assert exc_info.value.status_code == 401

    def test_altered_payload_is_malformed(self, tokens):
        forged = _tamper_payload(tokens.issue(identity), role="admin")
        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify(forged)
        assert exc_info.value.reason is TokenRejection.MALFORMED

    def test_wrong_secret_is_malformed(self, tokens):
        other = TokenService("another-secret").issue(identity)
        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify(other)
        assert exc_info.value.reason is TokenRejection.MALFORMED

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_unparseable_token_is_malformed(self, tokens, token):
        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify(token)
        assert exc_info.value.reason is TokenRejection.MALFORMED

    def test_token_without_subject_is_malformed(self, tokens):
        token = jwt.encode({"email": "alice@x.com", "exp": 4102444800}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify(token)
        assert exc_info.value.reason is TokenRejection.MALFORMED


class TestParseDuration:

    @pytest.mark.parametrize("value,expected", [
        ("7d", timedelta(days=7)),
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("2w", timedelta(weeks=2)),
        ("3600", timedelta(seconds=3600)),
    ])
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "seven days", "7y", "-1d"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)
