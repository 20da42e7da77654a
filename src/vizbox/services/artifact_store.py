from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator

import structlog

from ..core.errors import ArtifactNotFoundError
from ..core.utils import classify, content_type
from .storage import LocalFSStorage

log = structlog.get_logger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@dataclass
class Artifact:
    path: Path
    content_type: str
    content_length: int
    headers: Dict[str, str] = field(default_factory=lambda: dict(NO_CACHE_HEADERS))

    def iter_bytes(self, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        with open(self.path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    return
                yield chunk

    def read_bytes(self) -> bytes:
        return b"".join(self.iter_bytes())


class ArtifactStore:
    """Read-only access to retained job output, contained under the jobs root."""

    def __init__(self, storage: LocalFSStorage):
        self.storage = storage

    def locate(self, job_id: str, filename: str) -> Path:
        root = self.storage.jobs_dir.resolve()
        try:
            job_dir = self.storage.output_path(job_id).resolve()
            path = (job_dir / filename).resolve()
        except (OSError, ValueError):
            raise ArtifactNotFoundError("artifact_not_found", job_id=job_id) from None
        if job_dir.parent != root:
            raise ArtifactNotFoundError("artifact_not_found", job_id=job_id)
        if not path.is_relative_to(job_dir) or path == job_dir:
            raise ArtifactNotFoundError("artifact_not_found", job_id=job_id)
        return path

    def fetch(self, job_id: str, filename: str) -> Artifact:
        path = self.locate(job_id, filename)
        try:
            st = path.stat()
        except (OSError, ValueError):
            raise ArtifactNotFoundError("artifact_not_found", job_id=job_id) from None
        if not path.is_file():
            raise ArtifactNotFoundError("artifact_not_found", job_id=job_id)

        art = Artifact(
            path=path,
            content_type=content_type(classify(path.name)),
            content_length=st.st_size,
        )
        log.info("artifact.served", job_id=job_id, filename=path.name, bytes=st.st_size)
        return art
