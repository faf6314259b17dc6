"""REST routes managing the caller's SSH keys."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session

from git_ssh_manager.api_models import SshKeyCreate, SshKeyUpdate
from git_ssh_manager.database import get_session
from git_ssh_manager.identity import require_user_id
from git_ssh_manager.key_store import KeyStore
from git_ssh_manager.model_converter import (
    convert_key_to_created,
    convert_key_to_detail,
    convert_key_to_summary,
    convert_key_to_updated,
)

router = APIRouter(prefix="/api/ssh-keys", tags=["ssh-keys"])
logger = logging.getLogger(__name__)


def get_key_store(session: Session = Depends(get_session)) -> KeyStore:
    """Build a :class:`KeyStore` bound to the request session."""
    return KeyStore(session)


@router.post("")
def create_key(
    payload: SshKeyCreate,
    user_id: str = Depends(require_user_id),
    store: KeyStore = Depends(get_key_store),
):
    """Store a new SSH keypair for the caller."""
    key = store.create(user_id, payload)
    return JSONResponse(
        {"message": "SSH key created successfully", "data": convert_key_to_created(key)},
        status_code=201,
    )


@router.get("")
def list_keys(
    user_id: str = Depends(require_user_id),
    store: KeyStore = Depends(get_key_store),
):
    """List the caller's active keys, newest first."""
    keys = store.list(user_id)
    logger.debug("Listing %s SSH keys for user %s", len(keys), user_id)
    return {
        "message": "SSH keys retrieved successfully",
        "data": [convert_key_to_summary(key) for key in keys],
    }


@router.get("/{key_id}")
def get_key(
    key_id: int,
    includePrivateKey: bool = False,
    user_id: str = Depends(require_user_id),
    store: KeyStore = Depends(get_key_store),
):
    """Return one key; the private part only when ``includePrivateKey=true``."""
    key = store.get(key_id, user_id)
    if includePrivateKey:
        logger.info("Private key of SSH key %s disclosed to user %s", key_id, user_id)
    return {
        "message": "SSH key retrieved successfully",
        "data": convert_key_to_detail(key, include_private_key=includePrivateKey),
    }


@router.put("/{key_id}")
def update_key(
    key_id: int,
    payload: SshKeyUpdate,
    user_id: str = Depends(require_user_id),
    store: KeyStore = Depends(get_key_store),
):
    """Partially update a key."""
    key = store.update(key_id, user_id, payload)
    return {"message": "SSH key updated successfully", "data": convert_key_to_updated(key)}


@router.delete("/{key_id}")
def delete_key(
    key_id: int,
    user_id: str = Depends(require_user_id),
    store: KeyStore = Depends(get_key_store),
):
    """Soft-delete a key."""
    store.delete(key_id, user_id)
    return {"message": "SSH key deleted successfully"}
