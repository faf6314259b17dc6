from typing import Any

from git_ssh_manager.api_models import (
    SshKeyCreated,
    SshKeyDetail,
    SshKeySecretDetail,
    SshKeySummary,
    SshKeyUpdated,
)
from git_ssh_manager.models import SshKey
from git_ssh_manager.time_utils import isoformat_utc


def _dump(model) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


def _provider_value(provider) -> str:
    return provider.value if hasattr(provider, "value") else provider


def convert_key_to_created(key: SshKey) -> dict[str, Any]:
    """Convert a freshly stored SshKey to its creation acknowledgement."""
    return _dump(
        SshKeyCreated(
            id=key.id,
            name=key.name,
            provider=_provider_value(key.provider),
            description=key.description,
            created_at=isoformat_utc(key.created_at),
        )
    )


def convert_key_to_updated(key: SshKey) -> dict[str, Any]:
    """Convert an updated SshKey to its update acknowledgement."""
    return _dump(
        SshKeyUpdated(
            id=key.id,
            name=key.name,
            provider=_provider_value(key.provider),
            description=key.description,
            updated_at=isoformat_utc(key.updated_at),
        )
    )


def convert_key_to_summary(key: SshKey) -> dict[str, Any]:
    """Convert an SshKey to the list representation (no key material)."""
    return _dump(
        SshKeySummary(
            id=key.id,
            name=key.name,
            provider=_provider_value(key.provider),
            description=key.description,
            is_active=key.is_active,
            created_at=isoformat_utc(key.created_at),
            updated_at=isoformat_utc(key.updated_at),
        )
    )


def convert_key_to_detail(key: SshKey, include_private_key: bool = False) -> dict[str, Any]:
    """Convert an SshKey to the detail representation.

    The private key is only part of the payload when explicitly requested.
    """
    fields = dict(
        id=key.id,
        name=key.name,
        public_key=key.public_key,
        provider=_provider_value(key.provider),
        description=key.description,
        is_active=key.is_active,
        created_at=isoformat_utc(key.created_at),
        updated_at=isoformat_utc(key.updated_at),
    )
    if include_private_key:
        return _dump(SshKeySecretDetail(private_key=key.private_key, **fields))
    return _dump(SshKeyDetail(**fields))
