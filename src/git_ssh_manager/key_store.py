"""Persistence of user-owned SSH keypairs."""

from __future__ import annotations

import logging
import re

from sqlmodel import Session, select

from .api_models import SshKeyCreate, SshKeyUpdate
from .errors import NotFoundError, ValidationFailure
from .models import KeyProvider, SshKey
from .time_utils import utcnow

logger = logging.getLogger(__name__)

SSH_PUBLIC_KEY_PATTERN = re.compile(
    r"^(ssh-rsa|ssh-ed25519|ecdsa-sha2-nistp256|ecdsa-sha2-nistp384|ecdsa-sha2-nistp521)"
    r"\s+[A-Za-z0-9+/]+={0,3}\s+[^@]+@[^@]+$"
)


class KeyNotFoundError(NotFoundError):
    """Raised when no active key with the given id belongs to the caller."""

    def __init__(self, key_id: int) -> None:
        super().__init__("SSH key not found")
        self.key_id = key_id


def validate_public_key(public_key: str) -> bool:
    """Return ``True`` when the text looks like an OpenSSH public key.

    The check is purely textual: key type, base64 body, then a
    ``user@host`` comment.
    """
    return bool(SSH_PUBLIC_KEY_PATTERN.match(public_key.strip()))


class KeyStore:
    """CRUD operations on :class:`SshKey` scoped to a caller identity."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, user_id: str, payload: SshKeyCreate) -> SshKey:
        """Validate and persist a new key for ``user_id``."""
        if not (payload.name or "").strip() or not payload.public_key:
            raise ValidationFailure("Name and public key are required")
        if not validate_public_key(payload.public_key):
            raise ValidationFailure("Invalid SSH key format")
        key = SshKey(
            user_id=user_id,
            name=payload.name,
            public_key=payload.public_key.strip(),
            private_key=payload.private_key,
            passphrase=payload.passphrase,
            provider=payload.provider or KeyProvider.github,
            description=payload.description,
        )
        self.session.add(key)
        self.session.commit()
        self.session.refresh(key)
        logger.info("Created SSH key %s (%s) for user %s", key.id, key.name, user_id)
        return key

    def list(self, user_id: str) -> list[SshKey]:
        """Return the active keys of ``user_id``, newest first."""
        stmt = (
            select(SshKey)
            .where(SshKey.user_id == user_id, SshKey.is_active == True)  # noqa: E712
            .order_by(SshKey.created_at.desc(), SshKey.id.desc())
        )
        return list(self.session.exec(stmt).all())

    def get(self, key_id: int, user_id: str) -> SshKey:
        """Return an active key owned by ``user_id`` or raise :class:`KeyNotFoundError`."""
        stmt = select(SshKey).where(
            SshKey.id == key_id,
            SshKey.user_id == user_id,
            SshKey.is_active == True,  # noqa: E712
        )
        key = self.session.exec(stmt).first()
        if key is None:
            logger.debug("SSH key %s not found for user %s", key_id, user_id)
            raise KeyNotFoundError(key_id)
        return key

    def update(self, key_id: int, user_id: str, payload: SshKeyUpdate) -> SshKey:
        """Merge the supplied fields over an existing key."""
        if payload.name is not None and not payload.name.strip():
            raise ValidationFailure("Name cannot be empty")
        if payload.public_key is not None and not validate_public_key(payload.public_key):
            raise ValidationFailure("Invalid SSH key format")
        key = self.get(key_id, user_id)
        changes = payload.model_dump(exclude_none=True)
        if "public_key" in changes:
            changes["public_key"] = changes["public_key"].strip()
        for field, value in changes.items():
            setattr(key, field, value)
        key.updated_at = utcnow()
        self.session.add(key)
        self.session.commit()
        self.session.refresh(key)
        logger.info("Updated SSH key %s (fields=%s)", key.id, sorted(changes))
        return key

    def delete(self, key_id: int, user_id: str) -> SshKey:
        """Soft-delete a key by clearing its active flag."""
        key = self.get(key_id, user_id)
        key.is_active = False
        key.updated_at = utcnow()
        self.session.add(key)
        self.session.commit()
        self.session.refresh(key)
        logger.warning("Deactivated SSH key %s for user %s", key.id, user_id)
        return key
