"""
Admin access check. A single shared secret compared with what the user typed.

This only decides which view the UI shows; it is not a security boundary.
"""

from __future__ import annotations

from dialogics.utils.config import admin_password
from dialogics.utils.logger import get_logger

logger = get_logger()


def check_admin_password(candidate: str, secret: str | None = None) -> bool:
    """Return True when candidate matches the configured admin secret."""
    expected = secret if secret is not None else admin_password()
    ok = bool(candidate) and candidate == expected
    if not ok:
        logger.info("Rejected admin login attempt.")
    return ok
