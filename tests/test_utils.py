import pytest

from vizbox.core.models import ArtifactKind
from vizbox.core.utils import classify, content_type, new_job_id


@pytest.mark.parametrize(
    "name, kind, ctype",
    [
        ("visualization.png", ArtifactKind.RASTER, "image/png"),
        ("report.html", ArtifactKind.MARKUP, "text/html"),
        ("chart.svg", ArtifactKind.VECTOR, "image/svg+xml"),
        ("CHART.SVG", ArtifactKind.VECTOR, "image/svg+xml"),
        ("out.txt", ArtifactKind.UNKNOWN, "application/octet-stream"),
        ("png", ArtifactKind.UNKNOWN, "application/octet-stream"),
    ],
)
def test_classify_and_content_type(name, kind, ctype):
    assert classify(name) is kind
    assert content_type(classify(name)) == ctype


def test_job_ids_are_unique_and_path_safe():
    ids = {new_job_id() for _ in range(1000)}
    assert len(ids) == 1000
    assert all(i.isalnum() for i in ids)
