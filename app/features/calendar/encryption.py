"""
OAuth token encryption at rest.

AES-256-GCM with a key taken from ENCRYPTION_KEY (base64, 32 bytes once
decoded; generate with `openssl rand -base64 32`). Every encryption uses a
fresh 16-byte IV. Stored format is three base64 parts:

    <iv>:<auth tag>:<ciphertext>
"""

import base64
import binascii
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.config import settings
from app.shared.errors import TokenEncryptionError

logger = logging.getLogger("ReMember.Calendar.Encryption")

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
KEY_LENGTH = 32


def _get_key(key: Optional[str] = None) -> bytes:
    raw = key if key is not None else settings.ENCRYPTION_KEY
    if not raw:
        raise TokenEncryptionError(
            "ENCRYPTION_KEY environment variable is not set. "
            "Generate one with: openssl rand -base64 32"
        )

    try:
        key_bytes = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        raise TokenEncryptionError("ENCRYPTION_KEY is not valid base64")

    if len(key_bytes) != KEY_LENGTH:
        raise TokenEncryptionError(
            f"ENCRYPTION_KEY must be {KEY_LENGTH} bytes (256 bits), got {len(key_bytes)} bytes"
        )
    return key_bytes


def encrypt_token(token: str, key: Optional[str] = None) -> str:
    if not token:
        raise TokenEncryptionError("Token cannot be empty")

    aesgcm = AESGCM(_get_key(key))
    iv = os.urandom(IV_LENGTH)
    # cryptography appends the tag to the ciphertext
    sealed = aesgcm.encrypt(iv, token.encode("utf-8"), None)
    ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]

    return ":".join(
        base64.b64encode(part).decode("ascii") for part in (iv, tag, ciphertext)
    )


def decrypt_token(encrypted_token: str, key: Optional[str] = None) -> str:
    """
    Reverse encrypt_token.

    Raises:
        TokenEncryptionError: on an empty value, a malformed value, a wrong key
            or a tampered ciphertext
    """
    if not encrypted_token:
        raise TokenEncryptionError("Encrypted token cannot be empty")

    key_bytes = _get_key(key)

    parts = encrypted_token.split(":")
    if len(parts) != 3:
        raise TokenEncryptionError("Invalid encrypted token format")

    try:
        iv, tag, ciphertext = (base64.b64decode(part, validate=True) for part in parts)
    except (binascii.Error, ValueError):
        raise TokenEncryptionError("Invalid encrypted token format")

    if not iv or len(tag) != AUTH_TAG_LENGTH:
        raise TokenEncryptionError("Invalid encrypted token format")

    try:
        plaintext = AESGCM(key_bytes).decrypt(iv, ciphertext + tag, None)
    except InvalidTag:
        logger.error("Token decryption failed: authentication tag mismatch")
        raise TokenEncryptionError("Failed to decrypt token - token may be corrupted or tampered")

    return plaintext.decode("utf-8")


def is_encrypted(token: Optional[str]) -> bool:
    """Format check only; does not prove the value decrypts."""
    if not token:
        return False

    parts = token.split(":")
    if len(parts) != 3:
        return False

    try:
        for part in parts:
            base64.b64decode(part, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True
