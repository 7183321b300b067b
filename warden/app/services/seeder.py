"""Startup seeding of the baseline roles and accounts."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ...config import Settings
from ..domain.models import User
from ..infra.db import get_session
from .identity import IdentityError, IdentityStore

logger = logging.getLogger(__name__)

ADMIN = "Admin"
MANAGER = "Manager"
DEFAULT_ROLES = (ADMIN, MANAGER)


class SeedingError(RuntimeError):
    """Seeding could not finish; the process must not start serving."""


@dataclass(frozen=True)
class SeedUser:
    email: str
    display_name: str
    first_name: str
    last_name: str
    password: str
    role: Optional[str] = None


@dataclass
class SeedReport:
    roles_created: List[str] = field(default_factory=list)
    users_created: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.roles_created or self.users_created)


def default_seed_users(password: str) -> List[SeedUser]:
    return [
        SeedUser("user@gmail.com", "Test User", "Test", "User", password),
        SeedUser("manager@gmail.com", "Test Manager", "Test", "Manager", password, MANAGER),
        SeedUser("admin@gmail.com", "Admin User", "Admin", "User", password, ADMIN),
    ]


class BootstrapSeeder:
    """Create missing roles, then missing users and their roles.

    Existence is checked before every write so the seeder can run on each
    start. Users that already exist are left untouched, role membership
    included.
    """

    def __init__(
        self,
        store: IdentityStore,
        roles: Sequence[str] = DEFAULT_ROLES,
        users: Sequence[SeedUser] = (),
    ) -> None:
        self.store = store
        self.roles = list(roles)
        self.users = list(users)

    def run(self) -> SeedReport:
        report = SeedReport()
        for name in self.roles:
            if self.store.role_exists(name):
                continue
            self._check(lambda: self.store.create_role(name))
            logger.info("created role %s", name)
            report.roles_created.append(name)

        for seed in self.users:
            if self.store.find_user_by_email(seed.email):
                logger.debug("seed user %s already exists", seed.email)
                continue
            self._check(lambda: self.store.create_user(self._user_from(seed), seed.password))
            if seed.role:
                created = self.store.find_user_by_email(seed.email)
                self._check(lambda: self.store.add_user_to_role(created, seed.role))
            logger.info("created seed user %s (role=%s)", seed.email, seed.role or "-")
            report.users_created.append(seed.email)
        return report

    @staticmethod
    def _user_from(seed: SeedUser) -> User:
        return User(
            user_name=seed.email,
            email=seed.email,
            display_name=seed.display_name,
            first_name=seed.first_name,
            last_name=seed.last_name,
        )

    @staticmethod
    def _check(operation):
        try:
            return operation()
        except IdentityError as exc:
            raise SeedingError(exc.errors[0]) from exc


def seed_defaults(store: IdentityStore, settings: Settings) -> SeedReport:
    return BootstrapSeeder(store, DEFAULT_ROLES, default_seed_users(settings.seed_password)).run()


def run_startup_seed(settings: Settings) -> SeedReport:
    with get_session() as session:
        store = IdentityStore(session, settings.password, settings.lockout)
        report = seed_defaults(store, settings)
    if report.changed:
        logger.info(
            "seeding finished: %d role(s), %d user(s) created",
            len(report.roles_created),
            len(report.users_created),
        )
    return report
