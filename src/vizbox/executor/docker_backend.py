# src/vizbox/executor/docker_backend.py
from __future__ import annotations
from typing import Iterator, Optional

import docker
from docker.errors import APIError, DockerException, ImageNotFound, NotFound
import structlog

from ..core.errors import SandboxCreateError, SandboxError, SandboxStartError, SandboxStreamError
from ..core.models import Limits, SandboxSpec

log = structlog.get_logger(__name__)


def _nano_cpus(cpus: float) -> Optional[int]:
    return int(cpus * 1e9) if cpus and cpus > 0 else None


class DockerSandboxHandle:
    def __init__(self, container, stream, auto_remove: bool = True):
        self.container = container
        self._stream = stream
        self.auto_remove = auto_remove
        self._removed = False

    @property
    def id(self) -> str:
        return self.container.id

    def stream_output(self) -> Iterator[bytes]:
        try:
            for chunk in self._stream:
                yield chunk
        except DockerException as e:
            raise SandboxStreamError(f"output stream failed: {e}") from e

    def wait(self) -> int:
        try:
            res = self.container.wait()
        except DockerException as e:
            raise SandboxError(f"wait_container error: {e}") from e
        return int(res.get("StatusCode", -1))

    def stop(self) -> None:
        try:
            self.container.kill()
        except NotFound:
            pass
        except APIError as e:
            # 409: not running anymore
            if e.status_code != 409:
                raise SandboxError(f"kill_container error: {e}") from e

    def ensure_removed(self) -> None:
        # removal happens here instead of via the daemon's AutoRemove so the
        # exit status is still readable after wait()
        if self._removed or not self.auto_remove:
            return
        try:
            self.container.remove(force=True)
        except NotFound:
            pass
        except APIError as e:
            # 409: the daemon is already removing it
            if e.status_code != 409:
                raise SandboxError(f"remove_container error: {e}") from e
        except DockerException as e:
            raise SandboxError(f"remove_container error: {e}") from e
        self._removed = True
        log.info("sandbox.removed", container=self.id)


class DockerBackend:
    """Runs each sandbox as a throwaway container via the Docker SDK."""

    name = "docker"

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        # lazy: importing the app must not need a reachable daemon
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    @staticmethod
    def host_config(limits: Limits) -> dict:
        cfg = {
            "mem_limit": limits.memory or None,
            "nano_cpus": _nano_cpus(limits.cpus),
            "pids_limit": limits.pids if limits.pids > 0 else None,
            "network_disabled": not limits.network,
        }
        return {k: v for k, v in cfg.items() if v is not None}

    def start(self, spec: SandboxSpec) -> DockerSandboxHandle:
        volumes = {
            str(m.source): {"bind": m.target, "mode": "ro" if m.read_only else "rw"}
            for m in spec.mounts
        }
        try:
            container = self.client.containers.create(
                image=spec.image,
                command=spec.command,
                working_dir=spec.workdir,
                volumes=volumes,
                name=spec.name,
                labels=spec.labels,
                detach=True,
                **self.host_config(spec.limits),
            )
        except ImageNotFound as e:
            raise SandboxCreateError(f"sandbox image not found: {spec.image}") from e
        except DockerException as e:
            raise SandboxCreateError(f"create_container error: {e}") from e

        try:
            # attach before start so no early output is lost
            stream = container.attach(stdout=True, stderr=True, stream=True, logs=True)
            container.start()
        except DockerException as e:
            try:
                container.remove(force=True)
            except DockerException:
                log.warning("sandbox.remove_failed", container=container.id)
            raise SandboxStartError(f"start_container error: {e}") from e

        log.info("sandbox.started", container=container.id, image=spec.image, name=spec.name)
        return DockerSandboxHandle(container, stream, auto_remove=spec.auto_remove)
