"""Tests for password hashing and the session token codec."""

import base64
import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt

from showerlog.config import get_settings
from showerlog.security import (
    BCRYPT_ROUNDS,
    create_access_token,
    decode_access_token,
    generate_single_use_token,
    hash_password,
    verify_password,
)


def test_hash_then_verify_round_trips():
    hashed = hash_password("abcdef")
    assert hashed != "abcdef"
    assert verify_password("abcdef", hashed)
    assert not verify_password("abcdeg", hashed)


def test_hash_uses_cost_factor_twelve():
    hashed = hash_password("abcdef")
    assert hashed.startswith("$2b$")
    assert hashed.split("$")[2] == str(BCRYPT_ROUNDS) == "12"


def test_hashes_are_salted():
    assert hash_password("abcdef") != hash_password("abcdef")


def test_verify_against_malformed_hash_is_false():
    assert verify_password("abcdef", "not-a-hash") is False


def test_issued_token_decodes_to_user_id():
    user_id = uuid4()
    assert decode_access_token(create_access_token(user_id)) == user_id


def test_token_payload_shape():
    user_id = uuid4()
    token = create_access_token(user_id)
    header_b64, payload_b64, _ = token.split(".")

    def _decode(segment: str) -> dict:
        return json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))

    assert _decode(header_b64)["alg"] == "HS256"
    payload = _decode(payload_b64)
    assert payload["userId"] == str(user_id)
    assert payload["exp"] - payload["iat"] == get_settings().jwt_expire_minutes * 60


def test_expired_token_is_rejected():
    issued = datetime.now(timezone.utc) - timedelta(minutes=get_settings().jwt_expire_minutes + 1)
    token = create_access_token(uuid4(), now=issued)
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"userId": str(uuid4()), "iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
        "some-other-secret",
        algorithm="HS256",
    )
    assert decode_access_token(token) is None


def test_tampered_signature_is_rejected():
    token = create_access_token(uuid4())
    header, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    assert decode_access_token(f"{header}.{payload}.{flipped}") is None


def test_tampered_payload_is_rejected():
    token = create_access_token(uuid4())
    header, _, signature = token.split(".")
    forged = base64.urlsafe_b64encode(json.dumps({"userId": str(uuid4())}).encode()).rstrip(b"=").decode()
    assert decode_access_token(f"{header}.{forged}.{signature}") is None


@pytest.mark.parametrize(
    "token",
    [
        "",
        "no-dots-at-all",
        "one.dot",
        "a.b.c",
        "a.b.c.d",
        "!!!.@@@.###",
        "....",
        "eyJhbGciOiJIUzI1NiJ9.eyJ1c2VySWQiOiJ4In0.",
    ],
)
def test_malformed_tokens_are_invalid_not_errors(token):
    assert decode_access_token(token) is None


def test_token_with_non_uuid_user_id_is_rejected():
    settings = get_settings()
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"userId": "not-a-uuid", "iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
        settings.jwt_secret_key,
        algorithm="HS256",
    )
    assert decode_access_token(token) is None


def test_single_use_tokens_are_unique_and_url_safe():
    tokens = {generate_single_use_token() for _ in range(20)}
    assert len(tokens) == 20
    for token in tokens:
        assert len(token) >= 32
        assert all(c.isalnum() or c in "-_" for c in token)
