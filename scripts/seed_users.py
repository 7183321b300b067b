#!/usr/bin/env python3
"""Seed the identity database with the default roles and accounts."""
from __future__ import annotations

import argparse
import logging

from sqlalchemy.orm import sessionmaker
from sqlmodel import Session

from warden.app.infra.db import build_engine, init_db
from warden.app.services.identity import IdentityStore
from warden.app.services.seeder import SeedingError, seed_defaults
from warden.config import configure_logging, load_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed default roles and users")
    parser.add_argument(
        "--database-url",
        default=None,
        help="defaults to the DATABASE_URL setting",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    configure_logging(args.log_level)
    settings = load_settings()
    engine = build_engine(args.database_url or settings.database_url)
    init_db(engine)
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False)
    with SessionLocal() as db:
        store = IdentityStore(db, settings.password, settings.lockout)
        try:
            report = seed_defaults(store, settings)
        except SeedingError as exc:
            db.rollback()
            logging.getLogger("seed_users").error("seeding failed: %s", exc)
            return 1
        db.commit()
    print(
        f"Seeded {len(report.roles_created)} role(s) and "
        f"{len(report.users_created)} user(s)."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
