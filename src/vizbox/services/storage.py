from __future__ import annotations
from pathlib import Path
import shutil

import structlog

from ..core.errors import StagingError
from ..settings import LanguageProfile

log = structlog.get_logger(__name__)


class LocalFSStorage:
    """
    Per-job workspaces on the local filesystem:
      <jobs_dir>/
        ├─ <job_id>-input/<entry>    (removed after every submission)
        └─ <job_id>-output/<file>    (kept so the artifact can be served)
    Every name is derived from the job id only.
    """

    def __init__(self, jobs_dir: Path):
        # always absolute: the paths end up as bind-mount sources
        self.jobs_dir = jobs_dir if jobs_dir.is_absolute() else jobs_dir.resolve()
        self.jobs_dir.mkdir(parents=True, exist_ok=True)

    def input_path(self, job_id: str) -> Path:
        return self.jobs_dir / f"{job_id}-input"

    def output_path(self, job_id: str) -> Path:
        return self.jobs_dir / f"{job_id}-output"

    def stage(self, job_id: str, profile: LanguageProfile, code: str) -> Path:
        """
        Create both directories and write the code to the profile's entry file.
        On failure nothing created by this call is left behind.
        """
        inp, out = self.input_path(job_id), self.output_path(job_id)
        created = [p for p in (inp, out) if not p.exists()]
        try:
            inp.mkdir(parents=True, exist_ok=True)
            out.mkdir(parents=True, exist_ok=True)
            (inp / profile.entry).write_text(code, encoding="utf-8")
        except OSError as e:
            for p in created:
                shutil.rmtree(p, ignore_errors=True)
            raise StagingError(f"cannot stage workspace: {e}", job_id=job_id) from e
        log.info("job.staged", job_id=job_id, entry=profile.entry, bytes=len(code.encode("utf-8")))
        return inp

    def remove_input(self, job_id: str) -> None:
        self._remove(self.input_path(job_id))

    def remove_workspace(self, job_id: str) -> None:
        self._remove(self.input_path(job_id))
        self._remove(self.output_path(job_id))

    def _remove(self, p: Path) -> None:
        if not p.exists():
            return
        shutil.rmtree(p)
        log.info("workspace.removed", path=str(p))
