"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Operations run on the selected entries of an open archive.

Each operation takes the archive and the Bitset produced by
select_entries(), touches only the marked indices in index order, and
returns an exit status.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from .bitset import Bitset
from .constants import COMP_STORED, METHOD_LABELS, PROG_NAME
from .errors import ZipError
from .reader import ZipReader
from .structures import ZipEntry
from .utils import safe_extract_path

logger = logging.getLogger(__name__)

_LIST_HEADER = (
    " Length   Method    Size  Cmpr    Date    Time   CRC-32   Name\n"
    "--------  ------  ------- ---- ---------- ----- --------  ----\n"
)
_LIST_FOOTER_RULE = "--------          -------  ---                            -------\n"


def _method_label(entry: ZipEntry) -> str:
    return METHOD_LABELS.get(entry.compression_method, f"Unk:{entry.compression_method:03d}")


def _ratio(uncompressed: int, compressed: int) -> int:
    if uncompressed == 0:
        return 0
    saved = uncompressed - compressed
    return max(0, (saved * 100 + uncompressed // 2) // uncompressed)


def list_archive(archive: ZipReader, selected: Bitset, out: Optional[TextIO] = None) -> int:
    """Print a verbose listing of the selected entries.

    The layout follows ``unzip -v``: one row per entry with sizes,
    method, ratio, timestamp and CRC, then a totals line.

    Returns:
        Always 0.
    """
    if out is None:
        out = sys.stdout

    out.write(f"Archive:  {archive.filename}\n")
    out.write(_LIST_HEADER)

    total_size = 0
    total_compressed = 0
    count = 0
    for index in selected.indices():
        entry = archive.get_entry(index)
        stamp = entry.date_time
        out.write(
            f"{entry.uncompressed_size:8d}  {_method_label(entry):6}  "
            f"{entry.compressed_size:7d} {_ratio(entry.uncompressed_size, entry.compressed_size):3d}% "
            f"{stamp:%m-%d-%Y %H:%M} {entry.crc32:08x}  {entry.name}\n"
        )
        total_size += entry.uncompressed_size
        total_compressed += entry.compressed_size
        count += 1

    out.write(_LIST_FOOTER_RULE)
    noun = "file" if count == 1 else "files"
    out.write(
        f"{total_size:8d}          {total_compressed:7d} "
        f"{_ratio(total_size, total_compressed):3d}%"
        f"                            {count} {noun}\n"
    )
    return 0


def test_archive(
    archive: ZipReader,
    selected: Bitset,
    out: Optional[TextIO] = None,
) -> int:
    """Decompress every selected entry and check its CRC.

    Returns:
        0 if every entry tested OK, 1 otherwise.
    """
    if out is None:
        out = sys.stdout

    failed = 0
    for index in selected.indices():
        entry = archive.get_entry(index)
        if entry.is_dir:
            continue
        try:
            archive.read(index)
        except ZipError as e:
            failed += 1
            out.write(f"    testing: {entry.name}   {e}\n")
            logger.debug("entry %d failed test", index, exc_info=True)
            continue
        out.write(f"    testing: {entry.name}   OK\n")

    if failed:
        out.write(f"At least one error was detected in {archive.filename}.\n")
        return 1
    out.write(f"No errors detected in compressed data of {archive.filename}.\n")
    return 0


def extract_archive(
    archive: ZipReader,
    selected: Bitset,
    dest: str | Path = ".",
    out: Optional[TextIO] = None,
    errors: Optional[TextIO] = None,
) -> int:
    """Write the selected entries below ``dest``.

    Entries whose names are absolute or climb out of ``dest`` are
    skipped. A failing entry does not stop the others.

    Returns:
        0 if every selected entry was extracted, 1 otherwise.
    """
    if out is None:
        out = sys.stdout
    if errors is None:
        errors = sys.stderr

    output_dir = Path(dest)
    status = 0
    for index in selected.indices():
        entry = archive.get_entry(index)
        try:
            target = safe_extract_path(output_dir, entry.name)
        except ZipError as e:
            errors.write(f"{PROG_NAME}: skipping {entry.name}: {e}\n")
            status = 1
            continue

        if entry.is_dir:
            out.write(f"   creating: {target}/\n")
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.write(f"{PROG_NAME}: cannot create {target}: {e}\n")
                status = 1
            continue

        verb = " extracting" if entry.compression_method == COMP_STORED else "  inflating"
        out.write(f"{verb}: {target}\n")
        try:
            data = archive.read(index)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except (ZipError, OSError) as e:
            errors.write(f"{PROG_NAME}: error extracting {entry.name}: {e}\n")
            status = 1

    return status
