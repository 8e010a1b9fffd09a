"""Shared API dependencies: single import point for all routers.

Re-exports database session, clock, and authentication dependencies so that
router modules can import everything they need from one place::

    from stayfinder.api.deps import get_db, get_current_active_user
"""

from stayfinder.auth.dependencies import (
    get_current_active_user,
    get_current_user,
    require_admin,
)
from stayfinder.clock import get_clock
from stayfinder.database import get_db, get_session_factory

__all__ = [
    "get_db",
    "get_session_factory",
    "get_clock",
    "get_current_user",
    "get_current_active_user",
    "require_admin",
]
