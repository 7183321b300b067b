"""
Warden: a small identity host that seeds baseline roles and accounts at
startup and hydrates per-login sessions from the identity store.

The web framework, ORM, password hashing primitive and OAuth flows are
provided by FastAPI/Starlette, SQLModel, passlib and Authlib; this
package holds the seeding routine, the session hydration policy and the
wiring around them.
"""

__all__ = [
    "BootstrapSeeder",
    "SeedUser",
    "SeedingError",
    "hydrate_session",
]

from .app.services.hydrator import hydrate_session
from .app.services.seeder import BootstrapSeeder, SeedingError, SeedUser

__version__ = "0.1.0"
