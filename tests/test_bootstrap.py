from __future__ import annotations

import pytest

from identity_admin.domain.account import Account
from identity_admin.domain.bootstrap import ensure_bootstrap_admin
from identity_admin.domain.contracts import BootstrapAdmin
from identity_admin.domain.errors import Conflict, ValidationError
from identity_admin.security.passwords import verify_password

from conftest import TEST_ROUNDS, RacingRepository

ROOT = BootstrapAdmin(name="Root", initials="ADM", password="seed")


def _member(repository, initials: str, *, is_admin: bool = False, is_active: bool = True) -> Account:
    return repository.insert_account(
        Account(
            account_id=None,
            display_name="Existing",
            initials=initials,
            password_hash="$2b$04$" + "x" * 53,
            is_admin=is_admin,
            is_active=is_active,
        )
    )


def test_empty_store_gets_one_active_admin(repository):
    created = ensure_bootstrap_admin(repository, ROOT, password_rounds=TEST_ROUNDS)

    accounts = repository.all()
    assert len(accounts) == 1
    admin = accounts[0]
    assert created.account_id == admin.account_id
    assert (admin.display_name, admin.initials) == ("Root", "ADM")
    assert admin.is_admin and admin.is_active
    assert admin.email == ""
    assert verify_password("seed", admin.password_hash)


def test_second_run_is_a_no_op(repository):
    ensure_bootstrap_admin(repository, ROOT, password_rounds=TEST_ROUNDS)
    assert ensure_bootstrap_admin(repository, ROOT, password_rounds=TEST_ROUNDS) is None
    assert len(repository.all()) == 1
    assert repository.insert_calls == 1


def test_existing_active_admin_skips_creation(repository):
    _member(repository, "OPS", is_admin=True)
    assert ensure_bootstrap_admin(repository, ROOT, password_rounds=TEST_ROUNDS) is None
    assert [a.initials for a in repository.all()] == ["OPS"]


def test_inactive_admin_does_not_count(repository):
    _member(repository, "OLD", is_admin=True, is_active=False)
    created = ensure_bootstrap_admin(repository, ROOT, password_rounds=TEST_ROUNDS)
    assert created is not None
    assert repository.count_active_admins() == 1


def test_initials_collision_with_non_admin_is_fatal(repository):
    _member(repository, "ADM")
    with pytest.raises(Conflict):
        ensure_bootstrap_admin(repository, ROOT, password_rounds=TEST_ROUNDS)
    assert repository.count_active_admins() == 0
    assert len(repository.all()) == 1


def test_store_level_collision_is_fatal():
    racing = RacingRepository()
    _member(racing, "ADM")
    with pytest.raises(Conflict):
        ensure_bootstrap_admin(racing, ROOT, password_rounds=TEST_ROUNDS)


def test_unusable_password_is_rejected(repository):
    with pytest.raises(ValidationError):
        ensure_bootstrap_admin(repository, BootstrapAdmin("Root", "ADM", "x" * 80), password_rounds=TEST_ROUNDS)
    assert repository.all() == []


@pytest.mark.parametrize(
    "admin",
    [
        BootstrapAdmin("   ", "ADM", "seed"),
        BootstrapAdmin("", "ADM", "seed"),
        BootstrapAdmin("Root", "ADMIN", "seed"),
        BootstrapAdmin("Root", " ", "seed"),
        BootstrapAdmin("x" * 101, "ADM", "seed"),
    ],
)
def test_invalid_configured_fields_are_rejected(repository, admin):
    with pytest.raises(ValidationError):
        ensure_bootstrap_admin(repository, admin, password_rounds=TEST_ROUNDS)
    assert repository.all() == []
    assert repository.insert_calls == 0


def test_bootstrap_admin_repr_hides_password():
    assert "seed" not in repr(ROOT)
