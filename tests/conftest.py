"""
Pytest fixtures: a fake in-memory execution backend and temp-dir settings.
"""

import threading
from pathlib import Path

import pytest

from vizbox.core.errors import SandboxCreateError, SandboxStartError
from vizbox.settings import Settings


class FakeHandle:
    def __init__(self, chunks, exit_status, hang=False):
        self.chunks = list(chunks)
        self.exit_status = exit_status
        self.hang = hang
        self.stopped = threading.Event()
        self.stop_calls = 0
        self.removed = 0

    def stream_output(self):
        for c in self.chunks:
            yield c
        if self.hang:
            self.stopped.wait(10)

    def wait(self):
        if self.hang:
            self.stopped.wait(10)
            return 137
        return self.exit_status

    def stop(self):
        self.stop_calls += 1
        self.stopped.set()

    def ensure_removed(self):
        self.removed += 1


class FakeBackend:
    """
    Pretends to run the script: writes `writes` into the host side of the
    output mount, then replays `chunks` as the combined output stream.
    """

    name = "fake"

    def __init__(self, writes=None, chunks=(b"",), exit_status=0, fail=None, hang=False):
        self.writes = writes or {}
        self.chunks = chunks
        self.exit_status = exit_status
        self.fail = fail
        self.hang = hang
        self.specs = []
        self.handles = []
        self._lock = threading.Lock()

    def output_dir(self, spec) -> Path:
        return next(m.source for m in spec.mounts if m.target == "/output")

    def start(self, spec):
        with self._lock:
            self.specs.append(spec)
        if self.fail == "create":
            raise SandboxCreateError(f"sandbox image not found: {spec.image}")
        if self.fail == "start":
            raise SandboxStartError("start_container error: boom")
        out = self.output_dir(spec)
        for name, data in self.writes.items():
            if callable(data):
                data = data(spec)
            (out / name).write_bytes(data)
        h = FakeHandle(self.chunks, self.exit_status, hang=self.hang)
        with self._lock:
            self.handles.append(h)
        return h


@pytest.fixture
def settings(tmp_path):
    return Settings(jobs_dir=tmp_path / "jobs", timeout_s=5, poll_interval_s=0.01)


@pytest.fixture
def png_bytes():
    return b"\x89PNG\r\n\x1a\n" + bytes(range(64))
