from __future__ import annotations
from typing import Iterator, Protocol

from ..core.models import SandboxSpec


class SandboxHandle(Protocol):
    """A started sandbox. Every method must be safe to call from a worker thread."""

    def stream_output(self) -> Iterator[bytes]:
        """Combined stdout/stderr; ends when the sandbox exits."""

    def wait(self) -> int:
        """Block until the sandbox exits and return its exit status."""

    def stop(self) -> None:
        """Kill the sandbox process; wait() and stream_output() then finish."""

    def ensure_removed(self) -> None:
        """Tear the sandbox down. Idempotent."""


class ExecutionBackend(Protocol):
    name: str

    def start(self, spec: SandboxSpec) -> SandboxHandle:
        """
        Create and start a sandbox for spec.
        Raises SandboxCreateError or SandboxStartError; on the latter
        nothing created is left behind.
        """
