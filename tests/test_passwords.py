from __future__ import annotations

import pytest

from identity_admin.security.passwords import (
    DUMMY_HASH,
    hash_password,
    password_problem,
    verify_password,
)

from conftest import TEST_ROUNDS


@pytest.mark.parametrize("plaintext", ["seed", "correct horse battery staple", "pässwörd-ß", "x" * 72])
def test_hash_then_verify_accepts_the_same_password(plaintext):
    hashed = hash_password(plaintext, rounds=TEST_ROUNDS)
    assert hashed != plaintext
    assert verify_password(plaintext, hashed)


def test_verify_rejects_a_different_password():
    hashed = hash_password("pw1", rounds=TEST_ROUNDS)
    assert not verify_password("pw2", hashed)
    assert not verify_password("PW1", hashed)


def test_hashes_are_salted():
    assert hash_password("same", rounds=TEST_ROUNDS) != hash_password("same", rounds=TEST_ROUNDS)


def test_cost_factor_is_embedded_in_hash():
    assert hash_password("pw", rounds=TEST_ROUNDS).startswith("$2b$04$")
    assert DUMMY_HASH.startswith("$2b$12$")


@pytest.mark.parametrize("bad_hash", ["", "plaintext", "$2b$04$tooshort", "$9z$04$" + "a" * 53])
def test_verify_returns_false_for_malformed_hash(bad_hash):
    assert verify_password("pw", bad_hash) is False


def test_verify_returns_false_for_unusable_input():
    hashed = hash_password("pw", rounds=TEST_ROUNDS)
    assert verify_password("", hashed) is False
    assert verify_password("x" * 73, hashed) is False


@pytest.mark.parametrize("plaintext", ["", "x" * 73, "é" * 37])
def test_hash_rejects_unhashable_passwords(plaintext):
    assert password_problem(plaintext)
    with pytest.raises(ValueError):
        hash_password(plaintext, rounds=TEST_ROUNDS)
