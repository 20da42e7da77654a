from __future__ import annotations
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from pathlib import Path
from typing import List, Optional

import structlog

from ..core.errors import SandboxCancelledError, SandboxTimeoutError
from ..core.models import Language, Mount, SandboxRun, SandboxSpec
from ..executor.base import ExecutionBackend, SandboxHandle
from ..settings import Settings

log = structlog.get_logger(__name__)


class SandboxRunner:
    """
    Runs one job's script in a fresh sandbox and collects its output.

    Output is drained on its own thread while another thread waits for the
    exit, so a chatty script never stalls on a full pipe. The exit status is
    returned as-is; deciding what it means is left to the caller.
    """

    def __init__(self, backend: ExecutionBackend, settings: Settings):
        self.backend = backend
        self.s = settings

    def build_spec(self, job_id: str, language: Language, input_path: Path, output_path: Path) -> SandboxSpec:
        profile = self.s.profile(language)
        return SandboxSpec(
            image=profile.image,
            command=profile.expand(self.s.workdir_mount, self.s.output_mount),
            mounts=[
                Mount(source=input_path, target=self.s.workdir_mount),
                Mount(source=output_path, target=self.s.output_mount),
            ],
            workdir=self.s.workdir_mount,
            name=f"vizbox-{job_id}",
            limits=self.s.sandbox_limits(),
            auto_remove=True,
            labels={"vizbox.job_id": job_id, "vizbox.language": language.value},
        )

    def run(
        self,
        job_id: str,
        language: Language,
        input_path: Path,
        output_path: Path,
        cancel: Optional[threading.Event] = None,
    ) -> SandboxRun:
        spec = self.build_spec(job_id, language, input_path, output_path)
        handle = self.backend.start(spec)
        try:
            return self._supervise(job_id, handle, cancel)
        finally:
            handle.ensure_removed()

    def _supervise(self, job_id: str, handle: SandboxHandle, cancel: Optional[threading.Event]) -> SandboxRun:
        chunks: List[bytes] = []
        deadline = time.monotonic() + self.s.timeout_s if self.s.timeout_s > 0 else None
        stopped: Optional[str] = None
        start = time.monotonic()

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix=f"sbx-{job_id[:8]}") as pool:
            drain = pool.submit(self._drain, handle, chunks)
            waiter = pool.submit(handle.wait)
            while True:
                try:
                    rc = waiter.result(timeout=self.s.poll_interval_s)
                    break
                except FuturesTimeout:
                    pass
                except BaseException:
                    # wait() failed; make sure the drain thread can finish
                    handle.stop()
                    raise
                if stopped:
                    continue
                if cancel is not None and cancel.is_set():
                    stopped = "cancelled"
                elif deadline is not None and time.monotonic() >= deadline:
                    stopped = "timeout"
                if stopped:
                    log.warning("sandbox.stopping", job_id=job_id, reason=stopped)
                    handle.stop()
            drain.result()

        logs = b"".join(chunks).decode("utf-8", errors="replace")
        dur = time.monotonic() - start
        if stopped == "timeout":
            raise SandboxTimeoutError(
                f"Sandbox exceeded {self.s.timeout_s}s and was stopped", logs=logs, job_id=job_id
            )
        if stopped == "cancelled":
            raise SandboxCancelledError("Sandbox was cancelled", logs=logs, job_id=job_id)

        if rc != 0:
            log.warning("sandbox.exited", job_id=job_id, exit_status=rc, duration_s=round(dur, 3))
        else:
            log.info("sandbox.exited", job_id=job_id, exit_status=rc, duration_s=round(dur, 3))
        return SandboxRun(exit_status=rc, logs=logs)

    @staticmethod
    def _drain(handle: SandboxHandle, chunks: List[bytes]) -> None:
        for chunk in handle.stream_output():
            chunks.append(chunk)
