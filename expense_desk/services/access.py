"""Access gate for administrator-only operations.

The caller's user row is re-read on every check; an administrator flag
supplied by the client is never trusted. Privileged operations call
``require_admin`` before touching any other data so a refusal never leaves
partial work behind.
"""

from __future__ import annotations

import logging

from expense_desk.core.errors import CallerNotFound, Unauthorized
from expense_desk.db.dal import Database

logger = logging.getLogger("app.access")


def is_authorized_admin(db: Database, caller_user_id: int) -> bool:
    """Return True when the caller exists and carries the administrator flag.

    Raises CallerNotFound for unknown ids; a non-admin caller is simply False.
    """
    user = db.get_user(caller_user_id)
    if user is None:
        raise CallerNotFound()
    return bool(user["is_admin"])


def require_admin(db: Database, caller_user_id: int, action: str) -> None:
    if not is_authorized_admin(db, caller_user_id):
        logger.warning("denied %s for user %s", action, caller_user_id)
        raise Unauthorized()


def require_self_or_admin(
    db: Database, caller_user_id: int, target_user_id: int, action: str
) -> None:
    """Allow callers to act on their own records; anything else needs admin."""
    if caller_user_id == target_user_id:
        if db.get_user(caller_user_id) is None:
            raise CallerNotFound()
        return
    require_admin(db, caller_user_id, action)
