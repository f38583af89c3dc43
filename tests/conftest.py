"""Shared fixtures for building VSIX archives on disk."""

import zipfile
from pathlib import Path
from typing import Callable, Iterable, Tuple, Union

import pytest

Entry = Union[str, Tuple[str, Union[str, bytes]]]


def write_vsix(path: Path, entries: Iterable[Entry]) -> Path:
    """Write a zip archive with ``entries`` in the given order.

    Each entry is either a name (directory names end with "/", files get
    empty content) or a ``(name, content)`` pair.
    """
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for entry in entries:
            if isinstance(entry, str):
                name, content = entry, b""
            else:
                name, content = entry
            zf.writestr(name, content)
    return path


@pytest.fixture
def make_vsix(tmp_path) -> Callable[..., Path]:
    """Factory fixture: make_vsix(entries, name="sample.vsix") -> Path."""

    def factory(entries: Iterable[Entry], name: str = "sample.vsix") -> Path:
        return write_vsix(tmp_path / name, entries)

    return factory


@pytest.fixture
def sample_vsix(make_vsix) -> Path:
    """A small extension package."""
    return make_vsix([
        "extension/",
        ("extension/package.json", '{"name": "sample"}'),
        ("extension/README.md", "# Sample\n"),
        ("extension/images/icon.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 16),
        ("extension.vsixmanifest", "<PackageManifest/>"),
        ("[Content_Types].xml", "<Types/>"),
    ])


@pytest.fixture
def corrupt_vsix(tmp_path) -> Path:
    path = tmp_path / "corrupt.vsix"
    path.write_bytes(b"this is not a zip archive")
    return path
