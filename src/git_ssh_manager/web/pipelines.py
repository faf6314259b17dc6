"""Pipeline trigger and orchestrator notification routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from git_ssh_manager.api_models import PipelineTriggerRequest, RepositoryStatusReport
from git_ssh_manager.broadcaster import EventBroadcaster
from git_ssh_manager.identity import require_user_id
from git_ssh_manager.key_store import KeyStore
from git_ssh_manager.pipeline_runner import PipelineRunner
from git_ssh_manager.pipeline_trigger import PipelineTrigger

from .keys import get_key_store

router = APIRouter(prefix="/api", tags=["pipelines"])
logger = logging.getLogger(__name__)


def get_runner(request: Request) -> PipelineRunner:
    """Extract the shared :class:`PipelineRunner` from the FastAPI app state."""
    return request.app.state.pipeline_runner


def get_broadcaster(request: Request) -> EventBroadcaster:
    """Extract the shared :class:`EventBroadcaster` from the FastAPI app state."""
    return request.app.state.broadcaster


@router.post("/pipelines/trigger")
async def trigger_pipeline(
    payload: PipelineTriggerRequest,
    user_id: str = Depends(require_user_id),
    runner: PipelineRunner = Depends(get_runner),
    store: KeyStore = Depends(get_key_store),
):
    """Launch an orchestrator run and return its correlation id."""
    result = await PipelineTrigger(runner, store).trigger(user_id, payload)
    return {"message": "Pipeline triggered successfully", "data": result.model_dump()}


@router.post("/repository/success")
async def repository_status(
    report: RepositoryStatusReport,
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    """Receive a clone/setup outcome from the orchestrator and fan it out."""
    event, delivered = await broadcaster.receive_repository_status(report)
    return {
        "message": "Repository event broadcast",
        "data": {"guid": event.guid, "event_type": event.event_type, "clients": delivered},
    }
