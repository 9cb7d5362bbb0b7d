# -*- coding: utf-8 -*-
"""Password hashing and content obscuring for Aurora Journal.

This module encapsulates *stateless* helpers. It does **not** perform any
storage I/O and holds no session state.

A word on strength: the default ``xor`` codec combines the content with the
password, repeated, and Base64-encodes the result. It keeps stored text from
being read at a glance and nothing more: it is not authenticated, leaks the
content length, and falls to anyone who knows a little of the plaintext.
Hence ``obscure``/``reveal`` rather than encrypt/decrypt. The opt-in
``aesgcm`` codec (scrypt-derived key + AES-GCM) is the upgrade path; it
plugs into the same lock state machine.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple
import base64
import secrets

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .errors import DecodeError

# ---------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------

HASH_TIME_COST = 2
HASH_MEMORY_COST = 102_400
HASH_PARALLELISM = 8

SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1

KEY_LEN = 32
SALT_LEN = 16
NONCE_LEN = 12
TAG_LEN = 16

SEALED_PREFIX = "sealed:"

# bcryptjs hashes written by the browser app; bcrypt reads at most 72 bytes.
LEGACY_HASH_PREFIX = "$2"
BCRYPT_MAX_BYTES = 72


def make_password_hasher(
    time_cost: int = HASH_TIME_COST,
    memory_cost: int = HASH_MEMORY_COST,
    parallelism: int = HASH_PARALLELISM,
) -> PasswordHasher:
    """Return an argon2id hasher with the given cost factors."""
    return PasswordHasher(
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=32,
        salt_len=16,
    )


PH = make_password_hasher()


# ---------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------

def hash_password(password: str, hasher: Optional[PasswordHasher] = None) -> str:
    """Return a salted one-way hash of *password*."""
    return (hasher or PH).hash(password)

def verify_password(password: str, password_hash: str, hasher: Optional[PasswordHasher] = None) -> bool:
    """Return True iff *password* matches *password_hash*.

    bcrypt hashes from the browser app are checked with bcrypt. A malformed
    hash is reported exactly like a wrong password.
    """
    if is_legacy_hash(password_hash):
        try:
            return bcrypt.checkpw(
                password.encode("utf-8")[:BCRYPT_MAX_BYTES],
                password_hash.encode("ascii"),
            )
        except ValueError:
            return False
    try:
        return (hasher or PH).verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False

def is_legacy_hash(password_hash: str) -> bool:
    """True for hashes written by the browser app (bcrypt, ``$2a$``/``$2b$``)."""
    return password_hash.startswith(LEGACY_HASH_PREFIX)


# ---------------------------------------------------------------------
# XOR keystream (default codec)
# ---------------------------------------------------------------------

def _key_bytes(password: str) -> bytes:
    key = password.encode("utf-8")
    if not key:
        raise ValueError("Password must not be empty")
    return key

def _xor(data: bytes, key: bytes) -> bytes:
    return bytes(b ^ key[i % len(key)] for i, b in enumerate(data))

def obscure(plaintext: str, password: str) -> str:
    """XOR the UTF-8 bytes of *plaintext* with the cycled password; Base64 the result."""
    mixed = _xor(plaintext.encode("utf-8"), _key_bytes(password))
    return base64.b64encode(mixed).decode("ascii")

def reveal(cipher_text: str, password: str) -> str:
    """Exact inverse of :func:`obscure`.

    Raises DecodeError when *cipher_text* is not valid Base64 or does not
    decode to UTF-8. A wrong password is NOT detected here.
    """
    key = _key_bytes(password)
    try:
        mixed = base64.b64decode(cipher_text, validate=True)
    except ValueError as exc:
        raise DecodeError("invalid base64") from exc
    try:
        return _xor(mixed, key).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError("invalid utf-8") from exc


# ---------------------------------------------------------------------
# Browser keystream (read-only)
# ---------------------------------------------------------------------

def _utf16_units(text: str) -> List[int]:
    raw = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]

def reveal_legacy(cipher_text: str, password: str) -> str:
    """Reveal content obscured by the browser app.

    That app XORed UTF-16 code units with the cycled password and passed the
    result to ``btoa``, so every decoded byte is one code unit. Entries are
    only ever read this way; re-locking uses :func:`obscure`.
    """
    key = _utf16_units(password)
    if not key:
        raise ValueError("Password must not be empty")
    try:
        mixed = base64.b64decode(cipher_text, validate=True)
    except ValueError as exc:
        raise DecodeError("invalid base64") from exc
    units = b"".join(
        (b ^ key[i % len(key)]).to_bytes(2, "little") for i, b in enumerate(mixed)
    )
    try:
        return units.decode("utf-16-le")
    except UnicodeDecodeError as exc:
        raise DecodeError("invalid utf-16") from exc


# ---------------------------------------------------------------------
# scrypt + AES-GCM (opt-in codec)
# ---------------------------------------------------------------------

def scrypt_kdf(password: str, salt: bytes, length: int = KEY_LEN) -> bytes:
    """Derive a key from a password using scrypt."""
    kdf = Scrypt(salt=salt, length=length, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(password.encode("utf-8"))

def aesgcm_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> Tuple[bytes, bytes]:
    """Encrypt *plaintext* with AES-GCM; return (nonce, ciphertext)."""
    nonce = secrets.token_bytes(NONCE_LEN)
    ct = AESGCM(key).encrypt(nonce, plaintext, aad)
    return nonce, ct

def aesgcm_decrypt(key: bytes, nonce: bytes, ciphertext: bytes, aad: Optional[bytes] = None) -> bytes:
    """Decrypt AES-GCM *ciphertext* with *nonce*; return plaintext."""
    return AESGCM(key).decrypt(nonce, ciphertext, aad)

def seal(plaintext: str, password: str) -> str:
    """Encrypt *plaintext* under a scrypt-derived key; return ``sealed:<base64>``."""
    _key_bytes(password)
    salt = secrets.token_bytes(SALT_LEN)
    nonce, ct = aesgcm_encrypt(scrypt_kdf(password, salt), plaintext.encode("utf-8"))
    return SEALED_PREFIX + base64.b64encode(salt + nonce + ct).decode("ascii")

def unseal(cipher_text: str, password: str) -> str:
    """Inverse of :func:`seal`; any structural or tag failure is a DecodeError."""
    _key_bytes(password)
    if not cipher_text.startswith(SEALED_PREFIX):
        raise DecodeError("missing sealed prefix")
    try:
        raw = base64.b64decode(cipher_text[len(SEALED_PREFIX):], validate=True)
    except ValueError as exc:
        raise DecodeError("invalid base64") from exc
    if len(raw) < SALT_LEN + NONCE_LEN + TAG_LEN:
        raise DecodeError("sealed payload too short")
    salt, nonce, ct = raw[:SALT_LEN], raw[SALT_LEN:SALT_LEN + NONCE_LEN], raw[SALT_LEN + NONCE_LEN:]
    try:
        return aesgcm_decrypt(scrypt_kdf(password, salt), nonce, ct).decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as exc:
        raise DecodeError("sealed payload rejected") from exc


# ---------------------------------------------------------------------
# Codec registry
# ---------------------------------------------------------------------

class XorKeystreamCodec:
    """Repeating-password XOR + Base64. A deterrent, not encryption."""

    name = "xor"

    def obscure(self, plaintext: str, password: str) -> str:
        return obscure(plaintext, password)

    def reveal(self, cipher_text: str, password: str) -> str:
        return reveal(cipher_text, password)


class SealedCodec:
    """scrypt-derived key + AES-GCM; authenticated."""

    name = "aesgcm"

    def obscure(self, plaintext: str, password: str) -> str:
        return seal(plaintext, password)

    def reveal(self, cipher_text: str, password: str) -> str:
        return unseal(cipher_text, password)


CODECS: Dict[str, type] = {
    XorKeystreamCodec.name: XorKeystreamCodec,
    SealedCodec.name: SealedCodec,
}

def get_codec(name: str):
    """Return a codec instance by config name (``xor`` or ``aesgcm``)."""
    try:
        return CODECS[name]()
    except KeyError:
        raise ValueError(f"Unknown obscure codec: {name!r}") from None

def reveal_any(cipher_text: str, password: str) -> str:
    """Reveal *cipher_text* with whichever codec produced it."""
    if cipher_text.startswith(SEALED_PREFIX):
        return unseal(cipher_text, password)
    return reveal(cipher_text, password)
