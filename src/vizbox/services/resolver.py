from __future__ import annotations
from pathlib import Path

from ..core.errors import NoArtifactError, UnsupportedArtifactError
from ..core.models import ArtifactKind
from ..core.utils import ARTIFACT_PRIORITY, classify


class OutputResolver:
    """Picks the one deliverable file out of a job's output directory."""

    def resolve(self, output_path: Path) -> str:
        entries = sorted(output_path.iterdir()) if output_path.is_dir() else []
        if not entries:
            raise NoArtifactError("No visualization was generated")

        ranked = []
        for p in entries:
            kind = classify(p.name)
            if kind is ArtifactKind.UNKNOWN or not p.is_file():
                continue
            ranked.append((ARTIFACT_PRIORITY.index(kind), p.name))
        if not ranked:
            raise UnsupportedArtifactError("No valid visualization file found")
        return min(ranked)[1]
