import pytest

from vizbox.core.errors import NoArtifactError, UnsupportedArtifactError
from vizbox.services.resolver import OutputResolver


def _touch(d, *names):
    for n in names:
        (d / n).write_bytes(b"x")


def test_empty_directory_is_no_artifact(tmp_path):
    with pytest.raises(NoArtifactError):
        OutputResolver().resolve(tmp_path)


def test_missing_directory_is_no_artifact(tmp_path):
    with pytest.raises(NoArtifactError):
        OutputResolver().resolve(tmp_path / "nope")


def test_unrecognized_files_only(tmp_path):
    _touch(tmp_path, "result.txt", "data.csv")
    with pytest.raises(UnsupportedArtifactError):
        OutputResolver().resolve(tmp_path)


def test_directory_with_recognized_name_is_not_an_artifact(tmp_path):
    (tmp_path / "plot.png").mkdir()
    with pytest.raises(UnsupportedArtifactError):
        OutputResolver().resolve(tmp_path)


@pytest.mark.parametrize(
    "names, expected",
    [
        (["a.svg", "b.html", "z.png"], "z.png"),
        (["a.svg", "b.html"], "b.html"),
        (["notes.txt", "chart.svg"], "chart.svg"),
        (["b.png", "a.png", "c.html"], "a.png"),
        (["Plot.PNG", "index.html"], "Plot.PNG"),
    ],
)
def test_priority_raster_markup_vector(tmp_path, names, expected):
    _touch(tmp_path, *names)
    assert OutputResolver().resolve(tmp_path) == expected
