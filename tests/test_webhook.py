from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from postageapp.errors import ConfigurationError
from postageapp.webhook import sign, verify

SECRET = "postback-secret"
BODY = b'{"inbound_email":{"message":"From: a@test.test\\r\\n\\r\\nHello"}}'


def expected_signature(body: bytes, secret: str) -> str:
    return base64.b64encode(hmac.new(secret.encode(), body, hashlib.sha1).digest()).decode()


def test_sign_matches_hmac_sha1() -> None:
    assert sign(BODY, SECRET) == expected_signature(BODY, SECRET)
    assert sign(BODY.decode(), SECRET) == sign(BODY, SECRET)


def test_verify_accepts_exact_signature() -> None:
    assert verify(BODY, expected_signature(BODY, SECRET), SECRET)


def test_verify_rejects_mutated_body() -> None:
    signature = sign(BODY, SECRET)
    mutated = bytearray(BODY)
    mutated[10] ^= 0x01

    assert not verify(bytes(mutated), signature, SECRET)


def test_verify_rejects_mutated_signature() -> None:
    signature = sign(BODY, SECRET)
    mutated = ("A" if signature[0] != "A" else "B") + signature[1:]

    assert not verify(BODY, mutated, SECRET)
    assert not verify(BODY, signature + "=", SECRET)


def test_verify_rejects_other_secret() -> None:
    assert not verify(BODY, sign(BODY, "another-secret"), SECRET)


@pytest.mark.parametrize("signature", [None, ""])
def test_verify_rejects_missing_signature(signature) -> None:
    assert verify(BODY, signature, SECRET) is False


@pytest.mark.parametrize("secret", [None, "", "   "])
def test_missing_secret_is_configuration_error(secret) -> None:
    with pytest.raises(ConfigurationError):
        verify(BODY, "anything", secret)
