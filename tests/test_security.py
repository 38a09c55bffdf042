from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

from talenthr.core.security import (
    create_access_token,
    create_token_pair,
    generate_invitation_token,
    generate_otp_code,
    get_password_hash,
    hash_token,
    verify_password,
    verify_token,
)


def _user():
    return SimpleNamespace(id="64b7f0c2a1b2c3d4e5f60718", email="ada@acme.com", role="company_admin")


def test_password_hash_roundtrip():
    hashed = get_password_hash("Secret123!")
    assert hashed != "Secret123!"
    assert verify_password("Secret123!", hashed)
    assert not verify_password("wrong-password", hashed)


def test_verify_password_rejects_malformed_hash():
    assert verify_password("Secret123!", "not-a-bcrypt-hash") is False


def test_token_pair_carries_identity_and_type():
    access, refresh = create_token_pair(_user())

    access_payload = verify_token(access, "access")
    assert access_payload["sub"] == "64b7f0c2a1b2c3d4e5f60718"
    assert access_payload["email"] == "ada@acme.com"
    assert access_payload["role"] == "company_admin"
    assert access_payload["type"] == "access"

    assert verify_token(refresh, "refresh")["type"] == "refresh"


def test_tokens_are_not_interchangeable():
    access, refresh = create_token_pair(_user())
    assert verify_token(access, "refresh") is None
    assert verify_token(refresh, "access") is None


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "x"}, expires_delta=timedelta(seconds=-5))
    assert verify_token(token, "access") is None


def test_garbage_token_is_rejected():
    assert verify_token("not.a.jwt", "access") is None


def test_invitation_token_only_hash_is_derivable():
    raw, hashed = generate_invitation_token()
    assert len(raw) == 64
    assert hashed == hash_token(raw)
    assert raw not in hashed


def test_otp_code_is_six_digits():
    for _ in range(50):
        code = generate_otp_code()
        assert len(code) == 6
        assert code.isdigit()
        assert not code.startswith("0")
