import pytest

from blockio import Format

SUFFIXES = {
    Format.ASCII: ".cfg",
    Format.BINARY: ".bin",
    Format.JSON: ".json",
    Format.XML: ".xml",
}


@pytest.fixture(params=list(Format), ids=lambda f: f.value)
def fmt(request):
    return request.param


@pytest.fixture
def doc_path(fmt, tmp_path):
    """A document path whose extension selects the current backend."""
    return tmp_path / f"doc{SUFFIXES[fmt]}"
