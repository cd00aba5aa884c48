import base64

import pytest

from app.features.calendar.encryption import decrypt_token, encrypt_token, is_encrypted
from app.shared.errors import TokenEncryptionError


def test_round_trip(encryption_key):
    encrypted = encrypt_token("ya29.access-token")

    assert encrypted != "ya29.access-token"
    assert is_encrypted(encrypted)
    assert decrypt_token(encrypted) == "ya29.access-token"


def test_fresh_iv_per_encryption(encryption_key):
    assert encrypt_token("same") != encrypt_token("same")


def test_format_is_iv_tag_ciphertext(encryption_key):
    iv, tag, ciphertext = (base64.b64decode(p) for p in encrypt_token("abc").split(":"))
    assert len(iv) == 16
    assert len(tag) == 16
    assert len(ciphertext) == 3


def test_tampered_ciphertext_is_rejected(encryption_key):
    iv, tag, ciphertext = encrypt_token("refresh-token").split(":")
    raw = bytearray(base64.b64decode(ciphertext))
    raw[0] ^= 0x01
    tampered = ":".join([iv, tag, base64.b64encode(bytes(raw)).decode()])

    with pytest.raises(TokenEncryptionError):
        decrypt_token(tampered)


def test_wrong_key_is_rejected(encryption_key):
    encrypted = encrypt_token("secret")
    other_key = base64.b64encode(b"x" * 32).decode()

    with pytest.raises(TokenEncryptionError):
        decrypt_token(encrypted, key=other_key)


@pytest.mark.parametrize("value", ["", "only:two", "a:b:c:d", "!!:??:##"])
def test_malformed_values(encryption_key, value):
    with pytest.raises(TokenEncryptionError):
        decrypt_token(value)


def test_empty_token_cannot_be_encrypted(encryption_key):
    with pytest.raises(TokenEncryptionError):
        encrypt_token("")


def test_missing_or_short_key(monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "ENCRYPTION_KEY", None)
    with pytest.raises(TokenEncryptionError):
        encrypt_token("x")

    with pytest.raises(TokenEncryptionError):
        encrypt_token("x", key=base64.b64encode(b"short").decode())


def test_is_encrypted_is_a_format_check():
    assert not is_encrypted(None)
    assert not is_encrypted("plain-token")
