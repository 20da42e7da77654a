from __future__ import annotations
import uuid
from pathlib import PurePath

from .models import ArtifactKind

# selection priority, highest first
ARTIFACT_PRIORITY = (ArtifactKind.RASTER, ArtifactKind.MARKUP, ArtifactKind.VECTOR)

_KINDS = {
    ".png": ArtifactKind.RASTER,
    ".html": ArtifactKind.MARKUP,
    ".svg": ArtifactKind.VECTOR,
}

_CONTENT_TYPES = {
    ArtifactKind.RASTER: "image/png",
    ArtifactKind.MARKUP: "text/html",
    ArtifactKind.VECTOR: "image/svg+xml",
    ArtifactKind.UNKNOWN: "application/octet-stream",
}


def new_job_id() -> str:
    return uuid.uuid4().hex


def classify(filename: str) -> ArtifactKind:
    return _KINDS.get(PurePath(filename).suffix.lower(), ArtifactKind.UNKNOWN)


def content_type(kind: ArtifactKind) -> str:
    return _CONTENT_TYPES[kind]
