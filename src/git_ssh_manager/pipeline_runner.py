"""Launching pipeline runs on the external orchestrator."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Protocol

from .config import settings

logger = logging.getLogger(__name__)

SUCCESS_MARKERS = ("queued", "running")


@dataclass
class PipelineRunConfig:
    """Everything the orchestrator needs to start one pipeline run."""

    guid: str
    dag_id: str
    pipeline_name: str
    repo_url: str = ""
    branch: str = "main"
    project_name: str = "kedro_project"
    experiment_name: str = "kedro-pipeline"
    ssh_key_id: int | None = None
    ssh_key_dir: Path | None = None

    def to_conf(self) -> dict[str, Any]:
        """Render the ``conf`` object handed to the DAG run."""
        return {
            "pipeline_name": self.pipeline_name,
            "repo_url": self.repo_url,
            "branch": self.branch,
            "project_name": self.project_name,
            "experiment_name": self.experiment_name,
            "guid": self.guid,
            "ssh_key_id": self.ssh_key_id,
            "ssh_key_dir": str(self.ssh_key_dir) if self.ssh_key_dir else None,
        }


@dataclass
class RunOutcome:
    """Result of asking the orchestrator to start a run."""

    success: bool
    state: Literal["queued", "running", "failed"]
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def diagnostic(self) -> str:
        """Best human-readable explanation of a failure."""
        if self.timed_out:
            return "Orchestrator command timed out"
        return self.stderr.strip() or self.stdout.strip() or f"Orchestrator exited with code {self.returncode}"


class PipelineRunner(Protocol):
    """Capability used by :class:`~git_ssh_manager.pipeline_trigger.PipelineTrigger`."""

    async def invoke(self, config: PipelineRunConfig, timeout: float) -> RunOutcome:
        ...


class AirflowCliRunner:
    """Trigger DAG runs through the ``airflow dags trigger`` command."""

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or settings.orchestrator_cli

    def build_command(self, config: PipelineRunConfig) -> list[str]:
        return [
            self.executable,
            "dags",
            "trigger",
            config.dag_id,
            "--conf",
            json.dumps(config.to_conf()),
            "--run-id",
            config.guid,
        ]

    def build_env(self) -> dict[str, str]:
        """Return the child environment carrying orchestrator endpoint/credentials."""
        env = os.environ.copy()
        if settings.orchestrator_base_url:
            env["AIRFLOW__CLI__ENDPOINT_URL"] = settings.orchestrator_base_url
        if settings.orchestrator_username:
            env["AIRFLOW_API_USERNAME"] = settings.orchestrator_username
        if settings.orchestrator_password:
            env["AIRFLOW_API_PASSWORD"] = settings.orchestrator_password
        return env

    async def invoke(self, config: PipelineRunConfig, timeout: float) -> RunOutcome:
        """Run the CLI and interpret its output.

        :param config: Run configuration passed as ``--conf``.
        :param timeout: Seconds before the child process is killed.
        :returns: :class:`RunOutcome`; failures are reported, never raised.
        """
        cmd = self.build_command(config)
        logger.debug("Running orchestrator command: %s dags trigger %s", self.executable, config.dag_id)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.build_env(),
            )
        except (FileNotFoundError, PermissionError) as exc:
            logger.error("Cannot execute orchestrator CLI %s: %s", self.executable, exc)
            return RunOutcome(success=False, state="failed", stderr=str(exc))

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error("Orchestrator command for run %s timed out after %ss", config.guid, timeout)
            with suppress(ProcessLookupError):
                proc.kill()
            with suppress(Exception):
                await proc.wait()
            return RunOutcome(success=False, state="failed", timed_out=True)

        stdout = stdout_b.decode("utf-8", errors="replace")
        stderr = stderr_b.decode("utf-8", errors="replace")
        return interpret_output(config.guid, proc.returncode, stdout, stderr)


def interpret_output(run_id: str, returncode: int | None, stdout: str, stderr: str) -> RunOutcome:
    """Decide whether the CLI accepted the run from its exit code and stdout."""
    lowered = stdout.lower()
    accepted = returncode == 0 and (
        any(marker in lowered for marker in SUCCESS_MARKERS) or run_id in stdout
    )
    if not accepted:
        logger.error("Orchestrator rejected run %s (code %s)", run_id, returncode)
        return RunOutcome(
            success=False,
            state="failed",
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
        )
    state: Literal["queued", "running"] = "running" if "running" in lowered else "queued"
    logger.info("Orchestrator accepted run %s (state=%s)", run_id, state)
    return RunOutcome(success=True, state=state, returncode=returncode, stdout=stdout, stderr=stderr)
