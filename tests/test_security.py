import json
import time

from helpdesk_api.app.core.config import settings
from helpdesk_api.app.core.security import (
    ALGORITHM,
    _b64_url_decode,
    _b64_url_encode,
    _sign,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from helpdesk_api.app.core.timeutils import format_timestamp, parse_timestamp


def test_token_roundtrip():
    token = create_access_token({"sub": "ada@example.com", "id": "u1"})
    payload = decode_access_token(token)
    assert payload["sub"] == "ada@example.com"
    assert payload["id"] == "u1"
    assert "exp" in payload


def test_tampered_token_is_rejected():
    token = create_access_token({"sub": "ada@example.com"})
    header, payload, signature = token.split(".")
    forged = create_access_token({"sub": "mallory@example.com"}).split(".")[1]
    assert decode_access_token(f"{header}.{forged}.{signature}") is None
    assert decode_access_token("not.a.token") is None
    assert decode_access_token("garbage") is None


def test_expired_token_is_rejected():
    assert decode_access_token(create_access_token({"sub": "x"}, expires_delta=-10)) is None


def test_password_hashing():
    hashed = hash_password("secret")
    assert hashed != hash_password("secret")
    assert verify_password("secret", hashed)
    assert not verify_password("Secret", hashed)
    assert not verify_password("secret", None)
    assert not verify_password("secret", "zz$zz")


def test_timestamps_keep_milliseconds():
    parsed = parse_timestamp("2024-05-01T10:00:00.123Z")
    assert format_timestamp(parsed) == "2024-05-01T10:00:00.123Z"
    assert format_timestamp(parse_timestamp("2024-05-01T12:00:00+02:00")) == "2024-05-01T10:00:00.000Z"
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp("") is None


def test_timestamp_outside_utc_range_is_rejected():
    assert parse_timestamp("0001-01-01T00:00:00+01:00") is None
    assert parse_timestamp("9999-12-31T23:59:59-01:00") is None


def test_token_with_other_algorithm_is_rejected():
    header = _b64_url_encode(json.dumps({"alg": "none", "typ": "JWT"}).encode("utf-8"))
    payload = _b64_url_encode(json.dumps({"sub": "x", "exp": int(time.time()) + 60}).encode("utf-8"))
    signature = _b64_url_encode(_sign(f"{header}.{payload}".encode("utf-8"), settings.secret_key))
    assert decode_access_token(f"{header}.{payload}.{signature}") is None


def test_issued_tokens_declare_hs256():
    header = create_access_token({"sub": "x"}).split(".")[0]
    assert json.loads(_b64_url_decode(header)) == {"alg": ALGORITHM, "typ": "JWT"}
    assert ALGORITHM == "HS256"
