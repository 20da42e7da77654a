from __future__ import annotations
from typing import Optional


class VizboxError(Exception):
    """Base for every failure surfaced to callers of the job core."""

    def __init__(
        self,
        message: str,
        *,
        logs: Optional[str] = None,
        job_id: Optional[str] = None,
        exit_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.logs = logs
        self.job_id = job_id
        self.exit_status = exit_status

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.logs is not None:
            body["logs"] = self.logs
        if self.job_id is not None:
            body["jobId"] = self.job_id
        if self.exit_status is not None:
            body["exitCode"] = self.exit_status
        return body


class ValidationError(VizboxError):
    pass


class StagingError(VizboxError):
    pass


class ExecutionError(VizboxError):
    pass


# ---- sandbox ----

class SandboxError(VizboxError):
    pass


class SandboxCreateError(SandboxError):
    pass


class SandboxStartError(SandboxError):
    pass


class SandboxStreamError(SandboxError):
    pass


class SandboxTimeoutError(SandboxError):
    pass


class SandboxCancelledError(SandboxError):
    pass


# ---- artifacts ----

class ArtifactError(VizboxError):
    pass


class NoArtifactError(ArtifactError):
    pass


class UnsupportedArtifactError(ArtifactError):
    pass


class ArtifactNotFoundError(VizboxError):
    pass
