import pytest
from sqlmodel import select

from warden.app.domain.models import Role, User, UserRole
from warden.app.services.identity import IdentityError
from warden.app.services.seeder import (
    DEFAULT_ROLES,
    BootstrapSeeder,
    SeedingError,
    SeedUser,
    default_seed_users,
)

PASSWORD = "p@55wOrd"


def _seed(store):
    return BootstrapSeeder(store, DEFAULT_ROLES, default_seed_users(PASSWORD)).run()


def _count(store, model):
    return len(store.session.exec(select(model)).all())


def test_first_run_creates_roles_and_users(store):
    report = _seed(store)

    assert report.roles_created == ["Admin", "Manager"]
    assert report.users_created == ["user@gmail.com", "manager@gmail.com", "admin@gmail.com"]
    for name in DEFAULT_ROLES:
        assert store.role_exists(name)


def test_second_run_is_noop(store):
    _seed(store)
    counts = (_count(store, Role), _count(store, User), _count(store, UserRole))

    report = _seed(store)

    assert not report.changed
    assert (_count(store, Role), _count(store, User), _count(store, UserRole)) == counts


def test_manager_and_admin_get_their_role_once(store):
    _seed(store)
    _seed(store)

    manager = store.find_user_by_email("manager@gmail.com")
    admin = store.find_user_by_email("admin@gmail.com")
    plain = store.find_user_by_email("user@gmail.com")
    assert store.get_user_roles(manager) == ["Manager"]
    assert store.get_user_roles(admin) == ["Admin"]
    assert store.get_user_roles(plain) == []
    assert _count(store, UserRole) == 2


def test_seed_users_keep_attributes_and_password(store):
    _seed(store)

    manager = store.find_user_by_email("manager@gmail.com")
    assert manager.user_name == "manager@gmail.com"
    assert manager.display_name == "Test Manager"
    assert (manager.first_name, manager.last_name) == ("Test", "Manager")
    store.check_password(manager, PASSWORD)


def test_existing_user_is_left_untouched(store):
    store.create_role("Manager")
    existing = store.create_user(
        User(user_name="manager@gmail.com", email="manager@gmail.com", display_name="Someone"),
        "0therPassw",
    )

    report = BootstrapSeeder(store, DEFAULT_ROLES, default_seed_users(PASSWORD)).run()

    assert report.roles_created == ["Admin"]
    assert report.users_created == ["user@gmail.com", "admin@gmail.com"]
    assert store.get_user_roles(existing) == []
    assert existing.display_name == "Someone"
    store.check_password(existing, "0therPassw")


def test_role_creation_failure_aborts(store):
    def refuse(name):
        raise IdentityError([f"cannot create {name}", "second reason"])

    store.create_role = refuse

    with pytest.raises(SeedingError) as excinfo:
        BootstrapSeeder(store, ["Admin"], default_seed_users(PASSWORD)).run()

    assert str(excinfo.value) == "cannot create Admin"
    assert isinstance(excinfo.value.__cause__, IdentityError)
    assert store.find_user_by_email("user@gmail.com") is None


def test_user_creation_failure_aborts(store):
    users = [SeedUser("weak@gmail.com", "Weak", "Weak", "User", "short")]

    with pytest.raises(SeedingError, match="at least 8 characters"):
        BootstrapSeeder(store, DEFAULT_ROLES, users).run()


def test_role_assignment_failure_aborts(store):
    users = [SeedUser("ghost@gmail.com", "Ghost", "Ghost", "User", PASSWORD, "Ghost")]

    with pytest.raises(SeedingError, match="Role Ghost does not exist"):
        BootstrapSeeder(store, DEFAULT_ROLES, users).run()


class RecordingStore:
    """In-memory stand-in that records the order of store calls."""

    def __init__(self):
        self.calls = []
        self.roles = set()
        self.users = {}

    def role_exists(self, name):
        self.calls.append(("role_exists", name))
        return name in self.roles

    def create_role(self, name):
        self.calls.append(("create_role", name))
        self.roles.add(name)

    def find_user_by_email(self, email):
        self.calls.append(("find_user_by_email", email))
        return self.users.get(email)

    def create_user(self, user, password):
        self.calls.append(("create_user", user.email))
        self.users[user.email] = user

    def add_user_to_role(self, user, role):
        self.calls.append(("add_user_to_role", user.email, role))


def test_roles_are_created_before_any_assignment():
    store = RecordingStore()
    BootstrapSeeder(store, DEFAULT_ROLES, default_seed_users(PASSWORD)).run()

    names = [call[0] for call in store.calls]
    last_role = max(i for i, name in enumerate(names) if name == "create_role")
    first_assign = names.index("add_user_to_role")
    assert last_role < first_assign
    # re-fetch by email between creation and assignment
    idx = store.calls.index(("create_user", "admin@gmail.com"))
    assert store.calls[idx + 1] == ("find_user_by_email", "admin@gmail.com")
    assert store.calls[idx + 2] == ("add_user_to_role", "admin@gmail.com", "Admin")
