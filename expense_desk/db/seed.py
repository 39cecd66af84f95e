"""Seeding helpers for the initial administrator account.

`seed_default_admin` creates an administrator from settings when no
administrator exists yet. Existing users are left untouched so this can be
safely re-run on every startup.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from expense_desk.core.config import Settings
from expense_desk.services.passwords import hash_password

from .dal import Database
from .schema import init_db

logger = logging.getLogger("app.db.seed")


def seed_default_admin(db_path: Path, settings: Settings) -> Optional[int]:
    """Return the new admin id, or None when nothing was created."""
    if not settings.default_admin_email or not settings.default_admin_password:
        return None
    init_db(db_path)  # ensure tables exist
    db = Database(db_path)
    if db.admin_exists():
        return None
    email = settings.default_admin_email.strip().lower()
    if db.get_user_by_email(email) is not None:
        logger.warning("default admin email %s already belongs to a regular user", email)
        return None
    user_id = db.create_user(
        email=email,
        display_name=settings.default_admin_name,
        sector=settings.default_admin_sector,
        card_last4="0000",
        password_hash=hash_password(settings.default_admin_password, settings.bcrypt_rounds),
        is_admin=True,
        is_code_verified=True,
    )
    logger.info("seeded default administrator %s", user_id)
    return user_id
