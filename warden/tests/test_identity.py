from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from warden.app.domain.models import User
from warden.app.domain.passwords import (
    hash_password,
    password_errors,
    pwd_context,
    verify_password,
)
from warden.app.services.identity import (
    IdentityError,
    IdentityStore,
    InvalidCredentials,
    LockedOut,
    UserNotFound,
)
from warden.config import LockoutOptions, PasswordOptions


def _user(email="a@example.com"):
    return User(user_name=email, email=email, first_name="A", last_name="B")


def test_hash_and_verify():
    encoded = hash_password("p@55wOrd")
    assert encoded.startswith("$scrypt$")
    assert pwd_context.identify(encoded) == "scrypt"
    assert verify_password("p@55wOrd", encoded)
    assert not verify_password("p@55word", encoded)


def test_password_policy():
    options = PasswordOptions()
    assert password_errors("p@55wOrd", options) == []
    errors = password_errors("aaaa", options)
    assert len(errors) == 4  # length, digit, uppercase, unique chars


def test_create_user_hashes_password(store):
    user = store.create_user(_user(), "p@55wOrd")
    assert user.password_hash and user.password_hash != "p@55wOrd"
    assert user.normalized_email == "a@example.com"


def test_duplicate_email_is_rejected_case_insensitively(store):
    store.create_user(_user("Dup@Example.com"))
    with pytest.raises(IdentityError) as excinfo:
        store.create_user(User(user_name="other", email="dup@example.com"))
    assert "already taken" in str(excinfo.value)
    assert store.find_user_by_email("DUP@example.COM") is not None


def test_weak_password_reports_every_error(store):
    with pytest.raises(IdentityError) as excinfo:
        store.create_user(_user(), "abc")
    assert len(excinfo.value.errors) >= 3
    assert store.find_user_by_email("a@example.com") is None


def test_role_operations(store):
    user = store.create_user(_user())
    store.create_role("Manager")
    with pytest.raises(IdentityError):
        store.create_role("Manager")
    store.add_user_to_role(user, "Manager")
    with pytest.raises(IdentityError, match="already in role"):
        store.add_user_to_role(user, "Manager")
    assert store.get_user_roles(user) == ["Manager"]
    assert not store.role_exists("manager")


def test_load_record(store):
    user = store.create_user(_user())
    store.create_role("Admin")
    store.add_user_to_role(user, "Admin")
    record = store.load_record(user.id)
    assert record.email == "a@example.com"
    assert record.roles == ["Admin"]


def test_load_record_missing_user(store):
    with pytest.raises(UserNotFound):
        store.load_record("nope")


def test_lockout_after_repeated_failures(engine):
    with Session(engine) as session:
        store = IdentityStore(session, lockout_options=LockoutOptions(max_failed_access_attempts=3))
        user = store.create_user(_user(), "p@55wOrd")
        now = datetime(2024, 1, 1, 12, 0)
        for _ in range(2):
            with pytest.raises(InvalidCredentials):
                store.check_password(user, "wrong", now=now)
        with pytest.raises(LockedOut):
            store.check_password(user, "wrong", now=now)
        # correct password is refused while locked
        with pytest.raises(LockedOut):
            store.check_password(user, "p@55wOrd", now=now + timedelta(minutes=29))
        store.check_password(user, "p@55wOrd", now=now + timedelta(minutes=31))
        assert user.access_failed_count == 0
        assert user.lockout_end is None


def test_successful_sign_in_resets_counter(store):
    user = store.create_user(_user(), "p@55wOrd")
    with pytest.raises(InvalidCredentials):
        store.check_password(user, "wrong")
    assert user.access_failed_count == 1
    store.check_password(user, "p@55wOrd")
    assert user.access_failed_count == 0


def test_password_less_user_cannot_sign_in(store):
    user = store.create_user(_user())
    with pytest.raises(InvalidCredentials):
        store.check_password(user, "anything")
