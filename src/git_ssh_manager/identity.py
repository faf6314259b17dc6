"""Caller identity resolution.

There is no authentication: the caller names itself through the ``user-id``
header. Every service receives the resolved identifier explicitly so a real
authentication scheme can later replace :func:`require_user_id` alone.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header

from .config import settings

logger = logging.getLogger(__name__)


def require_user_id(
    user_id: Annotated[str | None, Header(alias="user-id")] = None,
) -> str:
    """Return the caller identity taken from the ``user-id`` header."""
    if user_id and user_id.strip():
        return user_id.strip()
    logger.debug("No user-id header supplied, using %s", settings.default_user_id)
    return settings.default_user_id
