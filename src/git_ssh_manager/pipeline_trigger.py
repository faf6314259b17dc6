"""Facilities for assembling and launching orchestrator pipeline runs."""

from __future__ import annotations

import logging
import secrets
import string
import time

from starlette.concurrency import run_in_threadpool

from .api_models import PipelineTriggerRequest, TriggerResult
from .config import settings
from .errors import PipelineTriggerError, ValidationFailure
from .key_material import (
    KeyMaterial,
    cleanup_key_dir,
    inline_key_material,
    stored_key_material,
    write_key_material,
)
from .key_store import KeyStore
from .pipeline_runner import PipelineRunConfig, PipelineRunner
from .time_utils import isoformat_utc

logger = logging.getLogger(__name__)

DEFAULT_EXPERIMENT_NAME = "kedro-pipeline"
DEFAULT_PROJECT_NAME = "kedro_project"
DEFAULT_BRANCH = "main"
_GUID_ALPHABET = string.digits + string.ascii_lowercase


def generate_guid() -> str:
    """Return ``pipeline_<epoch ms>_<9 base36 chars>``.

    Collisions are unlikely but possible; nothing downstream depends on
    strict uniqueness.
    """
    suffix = "".join(secrets.choice(_GUID_ALPHABET) for _ in range(9))
    return f"pipeline_{int(time.time() * 1000)}_{suffix}"


def experiment_name_for(experiment_name: str | None, pipeline_name: str) -> str:
    return f"{experiment_name or DEFAULT_EXPERIMENT_NAME}-{pipeline_name}"


class PipelineTrigger:
    """Fire-and-forget launcher for orchestrator pipeline runs."""

    def __init__(self, runner: PipelineRunner, key_store: KeyStore) -> None:
        self.runner = runner
        self.key_store = key_store

    def _resolve_key_material(self, user_id: str, request: PipelineTriggerRequest) -> KeyMaterial | None:
        if request.ssh_key_id is not None:
            key = self.key_store.get(request.ssh_key_id, user_id)
            return stored_key_material(key)
        return inline_key_material(request.ssh_private_key, request.ssh_public_key)

    async def trigger(self, user_id: str, request: PipelineTriggerRequest) -> TriggerResult:
        """Start a pipeline run and return its correlation details.

        :param user_id: Caller identity used to resolve stored keys.
        :param request: Trigger payload.
        :raises ValidationFailure: Missing pipeline name or malformed keys.
        :raises NotFoundError: ``sshKeyId`` does not belong to the caller.
        :raises PipelineTriggerError: The orchestrator did not accept the run.
        """
        pipeline_name = (request.pipeline_name or "").strip()
        if not pipeline_name:
            raise ValidationFailure("Pipeline name is required")
        material = await run_in_threadpool(self._resolve_key_material, user_id, request)

        guid = generate_guid()
        experiment_name = experiment_name_for(request.experiment_name, pipeline_name)
        key_dir = await run_in_threadpool(write_key_material, material, guid) if material else None
        config = PipelineRunConfig(
            guid=guid,
            dag_id=settings.orchestrator_dag_id,
            pipeline_name=pipeline_name,
            repo_url=request.repo_url or "",
            branch=request.branch or DEFAULT_BRANCH,
            project_name=request.project_name or DEFAULT_PROJECT_NAME,
            experiment_name=experiment_name,
            ssh_key_id=request.ssh_key_id,
            ssh_key_dir=key_dir,
        )
        logger.info(
            "Triggering pipeline %s for %s (guid=%s, keys=%s)",
            pipeline_name,
            config.repo_url or "<no repo>",
            guid,
            material.source if material else "none",
        )
        try:
            outcome = await self.runner.invoke(config, settings.orchestrator_timeout)
        except Exception:
            cleanup_key_dir(guid)
            raise
        if not outcome.success:
            cleanup_key_dir(guid)
            raise PipelineTriggerError(outcome.diagnostic)

        return TriggerResult(
            guid=guid,
            dag_run_id=guid,
            state=outcome.state,
            experiment_name=experiment_name,
            pipeline_name=pipeline_name,
            repo_url=request.repo_url,
            created_at=isoformat_utc(),
        )
