import warnings
import zipfile
from pathlib import Path
from typing import Optional

import pytest


class FakeArchive:
    """In-memory stand-in for an open archive: names by index, nothing else."""

    def __init__(self, names):
        self.names = [n.encode() if isinstance(n, str) else n for n in names]
        self.closed = False

    def get_num_entries(self) -> int:
        return len(self.names)

    def get_name(self, index: int) -> bytes:
        return self.names[index]

    def name_locate(self, name: bytes) -> Optional[int]:
        for index, candidate in enumerate(self.names):
            if candidate == name:
                return index
        return None

    def close(self) -> None:
        self.closed = True


def build_zip(path: Path, entries, compression=zipfile.ZIP_DEFLATED) -> Path:
    """Write ``entries`` (name, data) to a new archive, duplicates allowed."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        with zipfile.ZipFile(path, "w", compression=compression) as zf:
            for name, data in entries:
                zf.writestr(name, data)
    return path


@pytest.fixture
def fake_archive():
    return FakeArchive(["A.txt", "B.txt", "AB.txt"])


@pytest.fixture
def sample_zip(tmp_path):
    return build_zip(
        tmp_path / "sample.zip",
        [
            ("A.txt", b"alpha\n" * 50),
            ("B.txt", b"bravo\n"),
            ("AB.txt", b"alpha bravo\n"),
            ("docs/", b""),
            ("docs/readme.md", b"# readme\n"),
        ],
    )


@pytest.fixture
def stored_zip(tmp_path):
    return build_zip(
        tmp_path / "stored.zip",
        [("hello.txt", b"hello world, stored"), ("other.txt", b"other data")],
        compression=zipfile.ZIP_STORED,
    )


@pytest.fixture
def duplicate_zip(tmp_path):
    return build_zip(
        tmp_path / "dup.zip",
        [("same.txt", b"first"), ("x.bin", b"x"), ("same.txt", b"second")],
    )
