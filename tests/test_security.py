from __future__ import annotations

from farwell.core.security import hash_password, random_string, verify_password


def test_hash_roundtrip_and_prefix():
    hashed = hash_password("password123")
    assert hashed.startswith("argon2$")
    assert verify_password("password123", hashed) is True
    assert verify_password("password124", hashed) is False


def test_verify_rejects_empty_and_foreign_hashes():
    assert verify_password("password123", None) is False
    assert verify_password("password123", "") is False
    assert verify_password("password123", "$2y$10$notargon") is False
    assert verify_password("password123", "argon2$garbage") is False


def test_random_string_is_alphanumeric_and_unique():
    first = random_string(60)
    second = random_string(60)
    assert len(first) == 60
    assert first.isalnum()
    assert first != second
