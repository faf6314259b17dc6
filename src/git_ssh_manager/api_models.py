from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .models import KeyProvider


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SshKeyCreate(CamelModel):
    name: str | None = None
    public_key: str | None = None
    private_key: str | None = None
    passphrase: str | None = None
    provider: KeyProvider | None = None
    description: str | None = None


class SshKeyUpdate(CamelModel):
    name: str | None = None
    public_key: str | None = None
    private_key: str | None = None
    passphrase: str | None = None
    provider: KeyProvider | None = None
    description: str | None = None


class SshKeyCreated(CamelModel):
    id: int
    name: str
    provider: str
    description: str | None = None
    created_at: str


class SshKeyUpdated(CamelModel):
    id: int
    name: str
    provider: str
    description: str | None = None
    updated_at: str


class SshKeySummary(CamelModel):
    id: int
    name: str
    provider: str
    description: str | None = None
    is_active: bool
    created_at: str
    updated_at: str


class SshKeyDetail(SshKeySummary):
    public_key: str


class SshKeySecretDetail(SshKeyDetail):
    private_key: str | None = None


class PipelineTriggerRequest(CamelModel):
    pipeline_name: str | None = None
    repo_url: str | None = None
    branch: str | None = None
    project_name: str | None = None
    experiment_name: str | None = None
    ssh_private_key: str | None = None
    ssh_public_key: str | None = None
    ssh_key_id: int | None = None


class TriggerResult(BaseModel):
    guid: str
    dag_run_id: str
    state: str
    experiment_name: str
    pipeline_name: str
    repo_url: str | None = None
    created_at: str


class RepositoryStatusReport(BaseModel):
    guid: str | None = None
    pipeline_name: str = ""
    repo_url: str = ""
    branch: str = ""
    project_path: str = ""
    repo_status: str = ""
    validation_info: Any = None
    timestamp: str | None = None


class RepositoryEvent(BaseModel):
    guid: str
    pipeline_name: str
    repo_url: str
    branch: str
    project_path: str
    repo_status: str
    validation_info: Any = None
    timestamp: str
    event_type: Literal["repository_success", "repository_failure"]


class CodeExchangeRequest(BaseModel):
    code: str | None = None
    redirect_uri: str | None = None
