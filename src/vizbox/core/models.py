from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class Language(str, Enum):
    PYTHON = "python"
    R = "r"


class Status(str, Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (Status.SUCCEEDED, Status.FAILED)


class InvalidTransition(RuntimeError):
    pass


_ALLOWED = {
    Status.CREATED: {Status.RUNNING, Status.FAILED},
    Status.RUNNING: {Status.SUCCEEDED, Status.FAILED},
}


class ArtifactKind(str, Enum):
    RASTER = "raster"
    MARKUP = "markup"
    VECTOR = "vector"
    UNKNOWN = "unknown"


@dataclass
class Limits:
    memory: str         # docker notation, e.g. "512m"
    cpus: float
    pids: int
    network: bool


@dataclass
class Mount:
    source: Path      # host dir
    target: str       # path inside the sandbox
    read_only: bool = False


@dataclass
class SandboxSpec:
    image: str
    command: List[str]
    mounts: List[Mount]
    workdir: str
    name: str
    limits: Limits
    auto_remove: bool = True
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class SandboxRun:
    exit_status: int
    logs: str


@dataclass
class Job:
    id: str
    language: Language
    source_code: str
    input_path: Path
    output_path: Path
    status: Status = Status.CREATED
    logs: str = ""
    exit_status: Optional[int] = None
    artifact: Optional[str] = None

    def advance(self, status: Status) -> None:
        if status not in _ALLOWED.get(self.status, set()):
            raise InvalidTransition(f"{self.id}: {self.status.value} -> {status.value}")
        self.status = status


@dataclass
class SubmitResult:
    job_id: str
    artifact: str
    artifact_url_path: str
    logs: str
    exit_status: int
