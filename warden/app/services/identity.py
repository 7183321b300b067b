"""SQLModel-backed identity store: users, roles, role assignments and logins."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from ...config import LockoutOptions, PasswordOptions
from ..domain.models import Role, User, UserLogin, UserRole, normalize
from ..domain.passwords import hash_password, password_errors, verify_password
from ..domain.session import IdentityRecord

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """A store operation was refused. ``errors`` lists every reason."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors) or ["Unknown identity error."]
        super().__init__(self.errors[0])


class UserNotFound(LookupError):
    pass


class InvalidCredentials(Exception):
    pass


class LockedOut(Exception):
    def __init__(self, until: datetime) -> None:
        self.until = until
        super().__init__(f"User is locked out until {until.isoformat()}")


class IdentityStore:
    def __init__(
        self,
        session: Session,
        password_options: Optional[PasswordOptions] = None,
        lockout_options: Optional[LockoutOptions] = None,
    ) -> None:
        self.session = session
        self.password_options = password_options or PasswordOptions()
        self.lockout_options = lockout_options or LockoutOptions()

    # users

    def find_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.normalized_email == normalize(email))
        return self.session.exec(stmt).first()

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def find_user_by_name(self, user_name: str) -> Optional[User]:
        stmt = select(User).where(User.normalized_user_name == normalize(user_name))
        return self.session.exec(stmt).first()

    def list_users(self) -> List[User]:
        stmt = select(User).order_by(User.normalized_email)
        return list(self.session.exec(stmt).all())

    def create_user(self, user: User, password: Optional[str] = None) -> User:
        errors: List[str] = []
        if not user.user_name or not user.user_name.strip():
            errors.append("User name is required.")
        elif self.find_user_by_name(user.user_name):
            errors.append(f"User name '{user.user_name}' is already taken.")
        if not user.email or not user.email.strip():
            errors.append("Email is required.")
        elif self.find_user_by_email(user.email):
            errors.append(f"Email '{user.email}' is already taken.")
        if password is not None:
            errors.extend(password_errors(password, self.password_options))
        if errors:
            raise IdentityError(errors)

        user.normalized_user_name = normalize(user.user_name)
        user.normalized_email = normalize(user.email)
        user.lockout_enabled = self.lockout_options.allowed_for_new_users
        if password is not None:
            user.password_hash = hash_password(password)
        self.session.add(user)
        self.session.flush()
        self.session.refresh(user)
        return user

    def get_user(self, user_id: str) -> User:
        user = self.find_user_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    def load_record(self, user_id: str) -> IdentityRecord:
        user = self.get_user(user_id)
        return IdentityRecord(
            user_id=user.id,
            user_name=user.user_name,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            display_name=user.display_name,
            profile_url=user.profile_url,
            roles=self.get_user_roles(user),
        )

    # roles

    def find_role(self, name: str) -> Optional[Role]:
        return self.session.exec(select(Role).where(Role.name == name)).first()

    def role_exists(self, name: str) -> bool:
        return self.find_role(name) is not None

    def create_role(self, name: str) -> Role:
        if not name or not name.strip():
            raise IdentityError(["Role name is required."])
        if self.role_exists(name):
            raise IdentityError([f"Role name '{name}' is already taken."])
        role = Role(name=name)
        self.session.add(role)
        self.session.flush()
        self.session.refresh(role)
        return role

    def add_user_to_role(self, user: User, role_name: str) -> None:
        role = self.find_role(role_name)
        if role is None:
            raise IdentityError([f"Role {role_name} does not exist."])
        if self.session.get(UserRole, (user.id, role.id)):
            raise IdentityError([f"User already in role '{role_name}'."])
        self.session.add(UserRole(user_id=user.id, role_id=role.id))
        self.session.flush()

    def get_user_roles(self, user: User) -> List[str]:
        stmt = (
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user.id)
            .order_by(Role.name)
        )
        return list(self.session.exec(stmt).all())

    # external logins

    def find_user_by_login(self, provider: str, provider_key: str) -> Optional[User]:
        login = self.session.get(UserLogin, (provider, provider_key))
        if login is None:
            return None
        return self.find_user_by_id(login.user_id)

    def add_login(self, user: User, provider: str, provider_key: str) -> UserLogin:
        if self.session.get(UserLogin, (provider, provider_key)):
            raise IdentityError([f"A user with this {provider} login already exists."])
        login = UserLogin(provider=provider, provider_key=provider_key, user_id=user.id)
        self.session.add(login)
        self.session.flush()
        return login

    # sign-in

    def check_password(self, user: User, password: str, now: Optional[datetime] = None) -> None:
        """Verify ``password`` and keep the lockout counters current.

        Raises ``LockedOut`` while the account is locked and
        ``InvalidCredentials`` on a mismatch.
        """
        now = now or datetime.utcnow()
        if user.lockout_enabled and user.lockout_end and user.lockout_end > now:
            raise LockedOut(user.lockout_end)

        if user.password_hash and verify_password(password, user.password_hash):
            user.access_failed_count = 0
            user.lockout_end = None
            self.session.add(user)
            self.session.flush()
            return

        if user.lockout_enabled:
            user.access_failed_count += 1
            if user.access_failed_count >= self.lockout_options.max_failed_access_attempts:
                user.lockout_end = now + self.lockout_options.default_lockout
                user.access_failed_count = 0
                logger.warning("user %s locked out until %s", user.email, user.lockout_end)
                self.session.add(user)
                self.session.flush()
                raise LockedOut(user.lockout_end)
        self.session.add(user)
        self.session.flush()
        raise InvalidCredentials(user.email)
