import pytest

from ziptools import __main__ as cli
from ziptools import __version__
from ziptools.__main__ import RunMode, _resolve_mode, main
from ziptools.errors import AllocationError, UsageError


def _exit_code(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def test_help_exits_zero(capsys):
    assert _exit_code(["-h"]) == 0
    out = capsys.readouterr().out
    assert "usage: ziptools [-hV] [-l|-t] zip-archive [file ...]" in out
    assert "--list" in out


def test_version_exits_zero(capsys):
    assert _exit_code(["--version"]) == 0
    out = capsys.readouterr().out
    assert out.startswith(f"ziptools {__version__}\n")


def test_conflicting_modes_exit_one(sample_zip, capsys):
    assert _exit_code(["-l", "-t", str(sample_zip)]) == 1
    err = capsys.readouterr().err
    assert "only one mode selection allowed (none, -l, -t)" in err


def test_repeated_mode_is_a_conflict(sample_zip):
    assert _exit_code(["-l", "-l", str(sample_zip)]) == 1


def test_unknown_option_exits_one(sample_zip, capsys):
    assert _exit_code(["-x", str(sample_zip)]) == 1
    assert "usage: ziptools" in capsys.readouterr().err


def test_missing_archive_path_exits_one(capsys):
    assert _exit_code([]) == 1
    assert "no archive given" in capsys.readouterr().err


def test_unopenable_archive_exits_one(tmp_path, capsys):
    assert _exit_code([str(tmp_path / "missing.zip")]) == 1
    assert "cannot open zip archive" in capsys.readouterr().err


def test_not_a_zip_exits_one(tmp_path, capsys):
    path = tmp_path / "junk.zip"
    path.write_bytes(b"junk" * 20)
    assert _exit_code(["-l", str(path)]) == 1
    assert "cannot open zip archive" in capsys.readouterr().err


def test_list_mode(sample_zip, capsys):
    assert main(["-l", str(sample_zip)]) == 0
    out = capsys.readouterr().out
    assert "AB.txt" in out
    assert out.splitlines()[-1].endswith("5 files")


def test_list_with_tokens_after_options(sample_zip, capsys):
    assert main([str(sample_zip), "*.md", "--list", "B.txt"]) == 0
    captured = capsys.readouterr()
    assert captured.out.splitlines()[-1].endswith("2 files")
    assert "readme.md" in captured.out
    assert captured.err == ""


def test_unmatched_token_is_reported_but_not_fatal(sample_zip, capsys):
    assert main(["-l", str(sample_zip), "C.txt"]) == 0
    captured = capsys.readouterr()
    assert "ziptools: caution: filename not matched: C.txt" in captured.err
    assert captured.out.splitlines()[-1].endswith("0 files")


def test_test_mode(sample_zip, capsys):
    assert main(["--test", str(sample_zip), "A*"]) == 0
    out = capsys.readouterr().out
    assert "testing: A.txt   OK" in out
    assert "testing: AB.txt   OK" in out
    assert "testing: B.txt" not in out


def test_extract_mode_uses_configured_directory(sample_zip, tmp_path, monkeypatch):
    dest = tmp_path / "extracted"
    monkeypatch.setenv("ZIPTOOLS_EXTRACT_DIR", str(dest))
    assert main([str(sample_zip), "docs/*"]) == 0
    assert (dest / "docs" / "readme.md").read_bytes() == b"# readme\n"
    assert not (dest / "A.txt").exists()


def test_resolve_mode():
    assert _resolve_mode(None) is RunMode.EXTRACT
    assert _resolve_mode([RunMode.TEST]) is RunMode.TEST
    with pytest.raises(UsageError):
        _resolve_mode([RunMode.LIST, RunMode.TEST])


class _FailingClose:
    """File wrapper whose close() reports an error after closing."""

    def __init__(self, f):
        self._f = f

    def __getattr__(self, name):
        return getattr(self._f, name)

    def close(self):
        self._f.close()
        raise OSError("disk went away")


@pytest.fixture
def opened_readers(monkeypatch):
    opened = []

    class RecordingReader(cli.ZipReader):
        def __init__(self, file):
            super().__init__(file)
            opened.append(self)

    monkeypatch.setattr(cli, "ZipReader", RecordingReader)
    return opened


def test_archive_closed_when_operation_raises(sample_zip, opened_readers, monkeypatch):
    def broken_pipe(archive, selected):
        raise BrokenPipeError()

    monkeypatch.setattr(cli, "list_archive", broken_pipe)
    with pytest.raises(BrokenPipeError):
        main(["-l", str(sample_zip)])
    assert len(opened_readers) == 1
    assert opened_readers[0]._closed


def test_allocation_failure_exits_one(sample_zip, opened_readers, monkeypatch, capsys):
    def no_memory(archive, tokens):
        raise AllocationError("bitset of 5 entries")

    monkeypatch.setattr(cli, "select_entries", no_memory)
    assert _exit_code(["-l", str(sample_zip)]) == 1
    assert "ziptools: cannot allocate memory: bitset of 5 entries" in capsys.readouterr().err
    assert opened_readers[0]._closed


def test_close_failure_exits_one(sample_zip, monkeypatch, capsys):
    class FailingCloseReader(cli.ZipReader):
        def __init__(self, file):
            super().__init__(file)
            self._file = _FailingClose(self._file)

    monkeypatch.setattr(cli, "ZipReader", FailingCloseReader)
    assert _exit_code(["-l", str(sample_zip)]) == 1
    captured = capsys.readouterr()
    assert "A.txt" in captured.out
    assert f"ziptools: cannot close zip archive '{sample_zip}'" in captured.err
    assert "disk went away" in captured.err


def test_close_failure_after_allocation_failure_exits_one(sample_zip, monkeypatch, capsys):
    class FailingCloseReader(cli.ZipReader):
        def __init__(self, file):
            super().__init__(file)
            self._file = _FailingClose(self._file)

    def no_memory(archive, tokens):
        raise AllocationError("pattern table")

    monkeypatch.setattr(cli, "ZipReader", FailingCloseReader)
    monkeypatch.setattr(cli, "select_entries", no_memory)
    assert _exit_code(["-l", str(sample_zip)]) == 1
    err = capsys.readouterr().err
    assert "cannot allocate memory: pattern table" in err
    assert "cannot close zip archive" in err
