import io
import zipfile

import pytest

from conftest import build_zip
from ziptools.errors import ZipCrcError, ZipFormatError, ZipUnsupportedFeature
from ziptools.reader import ZipReader


def test_entries_in_directory_order(sample_zip):
    with ZipReader(sample_zip) as z:
        assert z.get_num_entries() == 5
        names = [z.get_name(i) for i in range(z.get_num_entries())]
    assert names == [b"A.txt", b"B.txt", b"AB.txt", b"docs/", b"docs/readme.md"]


def test_entry_metadata(sample_zip):
    with ZipReader(sample_zip) as z:
        entry = z.get_entry(0)
        assert entry.index == 0
        assert entry.name == "A.txt"
        assert entry.uncompressed_size == len(b"alpha\n" * 50)
        assert entry.compression_method == zipfile.ZIP_DEFLATED
        assert not entry.is_dir
        assert z.get_entry(3).is_dir


def test_read_deflated_and_stored(sample_zip, stored_zip):
    with ZipReader(sample_zip) as z:
        assert z.read(0) == b"alpha\n" * 50
        assert z.read(4) == b"# readme\n"
    with ZipReader(stored_zip) as z:
        assert z.read(0) == b"hello world, stored"


def test_duplicate_names_are_kept(duplicate_zip):
    with ZipReader(duplicate_zip) as z:
        assert z.get_num_entries() == 3
        assert z.get_name(0) == z.get_name(2) == b"same.txt"
        assert z.name_locate(b"same.txt") == 0
        assert z.read(2) == b"second"


def test_name_locate(sample_zip):
    with ZipReader(sample_zip) as z:
        assert z.name_locate(b"AB.txt") == 2
        assert z.name_locate("docs/readme.md") == 4
        assert z.name_locate(b"ab.txt") is None
        assert z.name_locate(b"C.txt") is None


def test_get_entry_out_of_range(sample_zip):
    with ZipReader(sample_zip) as z:
        with pytest.raises(IndexError):
            z.get_entry(5)
        with pytest.raises(IndexError):
            z.get_name(-1)


def test_reads_from_file_object(sample_zip):
    data = sample_zip.read_bytes()
    with ZipReader(io.BytesIO(data)) as z:
        assert z.get_num_entries() == 5
        assert z.read(1) == b"bravo\n"


def test_empty_archive(tmp_path):
    path = build_zip(tmp_path / "empty.zip", [])
    with ZipReader(path) as z:
        assert z.get_num_entries() == 0
        assert list(z.entries()) == []


def test_archive_comment(tmp_path):
    path = tmp_path / "comment.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("a", b"a")
        zf.comment = b"archive comment"
    with ZipReader(path) as z:
        assert z.comment == b"archive comment"


def test_comment_containing_eocd_signature(tmp_path):
    path = tmp_path / "tricky.zip"
    comment = b"see PK\x05\x06" + b"\x00" * 18 + b"trail"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("a.txt", b"a")
        zf.writestr("b.txt", b"b")
        zf.comment = comment
    with ZipReader(path) as z:
        assert z.comment == comment
        assert z.get_num_entries() == 2
        assert z.read(1) == b"b"


def test_utf8_names_keep_raw_bytes(tmp_path):
    path = build_zip(tmp_path / "utf8.zip", [("café.txt", b"x")])
    with ZipReader(path) as z:
        assert z.get_name(0) == "café.txt".encode("utf-8")
        assert z.get_entry(0).name == "café.txt"


def test_crc_mismatch_detected(stored_zip):
    raw = bytearray(stored_zip.read_bytes())
    pos = raw.index(b"hello world, stored")
    raw[pos] ^= 0xFF
    stored_zip.write_bytes(bytes(raw))
    with ZipReader(stored_zip) as z:
        with pytest.raises(ZipCrcError):
            z.read(0)
        assert z.read(1) == b"other data"


def test_unsupported_method(tmp_path):
    path = build_zip(tmp_path / "bz.zip", [("a.txt", b"data" * 10)], compression=zipfile.ZIP_BZIP2)
    with ZipReader(path) as z:
        with pytest.raises(ZipUnsupportedFeature):
            z.read(0)


def test_not_a_zip(tmp_path):
    path = tmp_path / "plain.txt"
    path.write_bytes(b"this is not an archive" * 10)
    with pytest.raises(ZipFormatError):
        ZipReader(path)


def test_truncated_central_directory(sample_zip):
    raw = sample_zip.read_bytes()
    eocd = raw.rindex(b"PK\x05\x06")
    damaged = raw[: eocd - 30] + raw[eocd:]
    with pytest.raises(ZipFormatError):
        ZipReader(io.BytesIO(damaged))


def test_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        ZipReader(tmp_path / "nope.zip")


def test_close_is_idempotent_and_blocks_reads(sample_zip):
    z = ZipReader(sample_zip)
    z.close()
    z.close()
    with pytest.raises(ZipFormatError):
        z.read(0)
