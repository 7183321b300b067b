"""Password hashing and policy checks."""
from typing import List

from passlib.context import CryptContext

from ...config import PasswordOptions

# Password hashing
pwd_context = CryptContext(
    schemes=["scrypt"],
    deprecated="auto",
    scrypt__default_rounds=14,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    return pwd_context.verify(password, encoded)


def password_errors(password: str, options: PasswordOptions) -> List[str]:
    """Return every policy violation for ``password`` (empty when it passes)."""
    errors: List[str] = []
    if len(password) < options.required_length:
        errors.append(f"Passwords must be at least {options.required_length} characters.")
    if options.require_non_alphanumeric and password.isalnum():
        errors.append("Passwords must have at least one non alphanumeric character.")
    if options.require_digit and not any(ch.isdigit() for ch in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if options.require_lowercase and not any(ch.islower() for ch in password):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if options.require_uppercase and not any(ch.isupper() for ch in password):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    if len(set(password)) < options.required_unique_chars:
        errors.append(
            f"Passwords must use at least {options.required_unique_chars} different characters."
        )
    return errors
