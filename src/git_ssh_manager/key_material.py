"""Utils to decode SSH key material and stage it on disk for pipeline runs"""


from __future__ import annotations

import base64
import binascii
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .config import settings
from .errors import ValidationFailure
from .models import SshKey

logger = logging.getLogger(__name__)

PRIVATE_KEY_FILENAME = "id_rsa"
PUBLIC_KEY_FILENAME = "id_rsa.pub"


@dataclass
class KeyMaterial:
    """Decoded keypair ready to be written for the orchestrator."""

    private_key: str
    public_key: str
    source: Literal["inline", "stored"] = "inline"


def decode_base64_key(value: str, label: str) -> str:
    """Decode a base64-encoded key sent by the UI.

    :param value: Base64 text.
    :param label: Field name used in the error message.
    :raises ValidationFailure: When the value is not valid base64 UTF-8 text.
    """
    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise ValidationFailure(f"{label} is not valid base64") from exc
    if not decoded.strip():
        raise ValidationFailure(f"{label} is empty")
    return decoded


def inline_key_material(private_b64: str | None, public_b64: str | None) -> KeyMaterial | None:
    """Build :class:`KeyMaterial` from the inline base64 pair, if any was sent."""
    if not private_b64 and not public_b64:
        return None
    if not private_b64 or not public_b64:
        raise ValidationFailure("Both private and public SSH keys are required")
    return KeyMaterial(
        private_key=decode_base64_key(private_b64, "sshPrivateKey"),
        public_key=decode_base64_key(public_b64, "sshPublicKey"),
    )


def stored_key_material(key: SshKey) -> KeyMaterial:
    """Build :class:`KeyMaterial` from a key held by the key store."""
    if not key.private_key:
        raise ValidationFailure("SSH key has no private key stored")
    return KeyMaterial(
        private_key=key.private_key,
        public_key=key.public_key,
        source="stored",
    )


def key_dir_for(guid: str) -> Path:
    """Return the per-run key directory for a correlation id."""
    safe = "".join(ch for ch in guid if ch.isalnum() or ch in "-_")
    if not safe:
        raise ValueError(f"Unusable correlation id {guid!r}")
    return settings.key_root_dir / safe


def write_key_material(material: KeyMaterial, guid: str) -> Path:
    """Persist a keypair into a private directory named after ``guid``.

    :param material: Keypair to write.
    :param guid: Correlation id of the pipeline run.
    :returns: Directory holding ``id_rsa`` (0600) and ``id_rsa.pub`` (0644).
    """
    key_dir = key_dir_for(guid)
    key_dir.mkdir(parents=True, exist_ok=True)
    os.chmod(key_dir, 0o700)
    private_path = key_dir / PRIVATE_KEY_FILENAME
    public_path = key_dir / PUBLIC_KEY_FILENAME
    # Create with restrictive mode so the key is never world-readable.
    fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(_with_trailing_newline(material.private_key))
    os.chmod(private_path, 0o600)
    public_path.write_text(_with_trailing_newline(material.public_key), encoding="utf-8")
    os.chmod(public_path, 0o644)
    logger.debug("Wrote %s key material for run %s to %s", material.source, guid, key_dir)
    return key_dir


def cleanup_key_dir(guid: str) -> bool:
    """Remove the key directory of a run once it is no longer needed.

    :returns: ``True`` when a directory was removed.
    """
    try:
        key_dir = key_dir_for(guid)
    except ValueError:
        return False
    if not key_dir.exists():
        return False
    logger.debug("Deleting key material for run %s", guid)
    shutil.rmtree(key_dir, ignore_errors=True)
    return True


def _with_trailing_newline(value: str) -> str:
    stripped = value.strip()
    return stripped + "\n"
