from __future__ import annotations

import pytest

from aurorajournal.crypto import (
    SEALED_PREFIX,
    SealedCodec,
    XorKeystreamCodec,
    get_codec,
    hash_password,
    is_legacy_hash,
    obscure,
    reveal,
    reveal_any,
    reveal_legacy,
    seal,
    unseal,
    verify_password,
)
from aurorajournal.errors import DecodeError

SAMPLES = [
    "",
    "I feel calm.",
    "a",
    "line one\nline two\ttabbed",
    "naïve café, 日記, emoji 🌙",
    "x" * 1000,
]
PASSWORDS = ["abcd", "k", "päss wörd", "🔑🔑🔑🔑"]


@pytest.mark.parametrize("plaintext", SAMPLES)
@pytest.mark.parametrize("password", PASSWORDS)
def test_reveal_inverts_obscure(plaintext, password):
    assert reveal(obscure(plaintext, password), password) == plaintext


@pytest.mark.parametrize("plaintext", [s for s in SAMPLES if s])
def test_obscured_text_differs_from_plaintext(plaintext):
    assert obscure(plaintext, "abcd") != plaintext


def test_obscure_is_base64_text():
    out = obscure("I feel calm.", "abcd")
    assert out.isascii()
    assert "I feel calm." not in out


def test_keystream_cycles_through_password():
    # Same byte XORed with the same key byte gives the same output; with a
    # one-character password every "a" maps to the same value.
    assert obscure("aaa", "k") == obscure("aaa", "kk")
    assert obscure("aaa", "ab") != obscure("aaa", "ba")


def test_reveal_rejects_malformed_base64():
    with pytest.raises(DecodeError):
        reveal("!!! not base64 !!!", "abcd")


def test_reveal_rejects_non_utf8_output():
    # 0xff XOR "a" (0x61) is 0x9e, a lone continuation byte.
    import base64

    cipher = base64.b64encode(bytes([0xFF])).decode("ascii")
    with pytest.raises(DecodeError):
        reveal(cipher, "a")


def test_wrong_password_is_not_detected_by_reveal():
    cipher = obscure("hello", "abcd")
    assert reveal(cipher, "wxyz") != "hello"


def test_empty_password_is_rejected():
    with pytest.raises(ValueError):
        obscure("text", "")


def test_hash_and_verify(hasher):
    h = hash_password("abcd", hasher)
    assert h != "abcd"
    assert verify_password("abcd", h, hasher)
    assert not verify_password("wxyz", h, hasher)


def test_hash_is_salted(hasher):
    assert hash_password("abcd", hasher) != hash_password("abcd", hasher)


def test_malformed_hash_verifies_false(hasher):
    assert not verify_password("abcd", "not-a-hash", hasher)
    assert not verify_password("abcd", "", hasher)


def test_sealed_roundtrip_and_tamper_detection():
    cipher = seal("I feel calm.", "abcd")
    assert cipher.startswith(SEALED_PREFIX)
    assert unseal(cipher, "abcd") == "I feel calm."
    with pytest.raises(DecodeError):
        unseal(cipher, "wxyz")
    with pytest.raises(DecodeError):
        unseal(SEALED_PREFIX + "AAAA", "abcd")


def test_reveal_any_dispatches_on_format():
    assert reveal_any(seal("one", "abcd"), "abcd") == "one"
    assert reveal_any(obscure("two", "abcd"), "abcd") == "two"


def test_codec_registry():
    assert isinstance(get_codec("xor"), XorKeystreamCodec)
    assert isinstance(get_codec("aesgcm"), SealedCodec)
    with pytest.raises(ValueError):
        get_codec("rot13")


def test_browser_bcrypt_hash_verifies(hasher, browser_lock):
    password_hash, _ = browser_lock("hello", "pässword")
    assert is_legacy_hash(password_hash)
    assert verify_password("pässword", password_hash, hasher)
    assert not verify_password("password", password_hash, hasher)


def test_truncated_bcrypt_hash_verifies_false(hasher):
    assert not verify_password("abcd", "$2a$10$tooshort", hasher)


def test_long_password_checks_against_bcrypt_prefix(hasher, browser_lock):
    # bcryptjs only ever used the first 72 bytes of the password
    long_password = "p" * 80
    password_hash, _ = browser_lock("x", long_password[:72])
    assert verify_password(long_password, password_hash, hasher)


def test_reveal_legacy_reads_browser_cipher(browser_lock):
    _, cipher = browser_lock("Café naïve, 1 2 3", "pässword")
    assert reveal_legacy(cipher, "pässword") == "Café naïve, 1 2 3"


def test_reveal_legacy_rejects_malformed_base64():
    with pytest.raises(DecodeError):
        reveal_legacy("not*base64", "abcd")


def test_argon2_hash_is_not_legacy(hasher):
    assert not is_legacy_hash(hash_password("abcd", hasher))
