from __future__ import annotations
import threading
from typing import Optional

import structlog

from ..core.errors import (
    ArtifactError,
    ExecutionError,
    SandboxError,
    ValidationError,
)
from ..core.models import Job, Language, Status, SubmitResult
from ..core.utils import new_job_id
from ..executor.base import ExecutionBackend
from ..runner.sandbox_runner import SandboxRunner
from ..settings import Settings
from .resolver import OutputResolver
from .storage import LocalFSStorage

log = structlog.get_logger(__name__)


class JobManager:
    """
    Orchestrator: stage workspace -> run sandbox -> resolve artifact.

    The input workspace is removed on every exit path. The output directory
    survives success (it holds the artifact) and artifact-resolution failures
    (for debugging); it is removed when the sandbox never ran to completion.
    """

    def __init__(self, settings: Settings, backend: ExecutionBackend):
        self.s = settings
        self.storage = LocalFSStorage(settings.jobs_dir)
        self.runner = SandboxRunner(backend, settings)
        self.resolver = OutputResolver()

    def validate(self, language, code) -> Language:
        if not language or not code:
            raise ValidationError("Language and code are required")
        try:
            lang = Language(language)
        except ValueError:
            raise ValidationError(f"Unsupported language: {language}") from None
        if len(code.encode("utf-8")) > self.s.max_code_bytes:
            raise ValidationError("Code too large")
        return lang

    def submit(self, language, code, cancel: Optional[threading.Event] = None) -> SubmitResult:
        lang = self.validate(language, code)

        job_id = new_job_id()
        job = Job(
            id=job_id,
            language=lang,
            source_code=code,
            input_path=self.storage.input_path(job_id),
            output_path=self.storage.output_path(job_id),
        )
        log.info("job.submitted", job_id=job_id, language=lang.value)

        try:
            self.storage.stage(job_id, self.s.profile(lang), code)
            return self._execute(job, cancel)
        except Exception as e:
            if not job.status.terminal:
                job.advance(Status.FAILED)
            log.warning("job.failed", job_id=job_id, error=type(e).__name__, reason=str(e))
            raise
        finally:
            self.storage.remove_input(job_id)

    def _execute(self, job: Job, cancel: Optional[threading.Event]) -> SubmitResult:
        job.advance(Status.RUNNING)
        try:
            run = self.runner.run(job.id, job.language, job.input_path, job.output_path, cancel=cancel)
        except SandboxError as e:
            # nothing usable can be in the output dir
            self.storage.remove_workspace(job.id)
            raise ExecutionError(e.message, logs=e.logs, job_id=job.id) from e
        job.logs, job.exit_status = run.logs, run.exit_status

        try:
            job.artifact = self.resolver.resolve(job.output_path)
        except ArtifactError as e:
            e.logs, e.job_id, e.exit_status = job.logs, job.id, job.exit_status
            raise

        job.advance(Status.SUCCEEDED)
        url = f"{self.s.url_prefix.rstrip('/')}/{job.id}/{job.artifact}"
        log.info("job.succeeded", job_id=job.id, artifact=job.artifact, exit_status=job.exit_status)
        return SubmitResult(
            job_id=job.id,
            artifact=job.artifact,
            artifact_url_path=url,
            logs=job.logs,
            exit_status=job.exit_status,
        )
