from datetime import datetime, timedelta, timezone

import jwt
import pytest

from crop_api.auth.tokens import Identity, TokenService
from crop_api.core.errors import TokenExpired, TokenInvalid

SECRET = 'token-suite-secret-that-is-long-enough'


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key=SECRET)


def test_issued_token_verifies_to_same_identity(tokens: TokenService) -> None:
    token = tokens.issue(42, 'user')

    assert tokens.verify(token) == Identity(user_id=42, role='user')


def test_issued_token_carries_subject_role_and_expiry(tokens: TokenService) -> None:
    token = tokens.issue(7, 'admin', ttl=timedelta(minutes=5))

    payload = jwt.decode(token, SECRET, algorithms=['HS256'])

    assert payload['sub'] == '7'
    assert payload['role'] == 'admin'
    assert payload['exp'] - payload['iat'] == 300


def test_default_ttl_is_seven_days(tokens: TokenService) -> None:
    payload = jwt.decode(tokens.issue(1, 'user'), SECRET, algorithms=['HS256'])

    assert payload['exp'] - payload['iat'] == 7 * 24 * 60 * 60


def test_verify_rejects_expired_token(tokens: TokenService) -> None:
    token = tokens.issue(1, 'user', ttl=timedelta(seconds=-1))

    with pytest.raises(TokenExpired):
        tokens.verify(token)


def test_verify_rejects_token_signed_with_other_key(tokens: TokenService) -> None:
    foreign = TokenService(secret_key='some-other-secret-that-is-long-enough').issue(1, 'user')

    with pytest.raises(TokenInvalid):
        tokens.verify(foreign)


def test_verify_rejects_unsigned_token(tokens: TokenService) -> None:
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    unsigned = jwt.encode({'sub': '1', 'role': 'admin', 'exp': exp}, None, algorithm='none')

    with pytest.raises(TokenInvalid):
        tokens.verify(unsigned)


def test_verify_rejects_token_without_subject(tokens: TokenService) -> None:
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({'role': 'user', 'exp': exp}, SECRET, algorithm='HS256')

    with pytest.raises(TokenInvalid):
        tokens.verify(token)


@pytest.mark.parametrize('token', ['', 'not-a-jwt', 'a.b.c'])
def test_verify_rejects_malformed_tokens(tokens: TokenService, token: str) -> None:
    with pytest.raises(TokenInvalid):
        tokens.verify(token)


def test_token_service_requires_secret() -> None:
    with pytest.raises(ValueError):
        TokenService(secret_key='')
