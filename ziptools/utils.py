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
Helper functions for ziptools.

CRC32 calculation, DOS date/time conversion, exact binary reads, entry
name decoding and extraction path validation.
"""

import struct
import zlib
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from .constants import FLAG_UTF8
from .errors import ZipFormatError


def crc32(data: bytes, value: int = 0) -> int:
    """Calculate (or continue) a CRC32 checksum.

    Args:
        data: Bytes to checksum.
        value: Running CRC from a previous call.

    Returns:
        CRC32 value as unsigned 32-bit integer.
    """
    return zlib.crc32(data, value) & 0xFFFFFFFF


def dos_datetime_to_timestamp(dos_date: int, dos_time: int) -> datetime:
    """Convert DOS date and time fields to a datetime.

    DOS date: bits 0-4 day, 5-8 month, 9-15 year - 1980.
    DOS time: bits 0-4 second / 2, 5-10 minute, 11-15 hour.

    Invalid combinations (month 0, day 0, ...) map to 1980-01-01 00:00.
    """
    day = dos_date & 0x1F
    month = (dos_date >> 5) & 0x0F
    year = ((dos_date >> 9) & 0x7F) + 1980

    second = (dos_time & 0x1F) * 2
    minute = (dos_time >> 5) & 0x3F
    hour = (dos_time >> 11) & 0x1F

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return datetime(1980, 1, 1, 0, 0, 0)


def read_exact(f: BinaryIO, size: int) -> bytes:
    """Read exactly 'size' bytes from file, raising ZipFormatError on short read.

    Args:
        f: Binary file-like object to read from.
        size: Number of bytes to read.

    Returns:
        Exactly 'size' bytes of data.

    Raises:
        ZipFormatError: If fewer than 'size' bytes could be read or size is invalid.
    """
    if size < 0:
        raise ZipFormatError(f"Invalid read size: {size} (must be non-negative)")

    data = f.read(size)
    if len(data) != size:
        raise ZipFormatError(
            f"Unexpected end of file: expected {size} bytes, got {len(data)}"
        )
    return data


def read_struct(f: BinaryIO, fmt: str) -> tuple:
    """Read and unpack one little-endian struct from the current position.

    Args:
        f: Binary file-like object to read from.
        fmt: struct format string, including its byte order prefix.

    Returns:
        Tuple of unpacked values.
    """
    return struct.unpack(fmt, read_exact(f, struct.calcsize(fmt)))


def decode_name(raw: bytes, flags: int) -> str:
    """Decode a raw entry name for display.

    Names flagged as UTF-8 are decoded as UTF-8; all others are read as
    CP437, the historical ZIP default. Matching never uses this value.
    """
    if flags & FLAG_UTF8:
        return raw.decode("utf-8", errors="replace")
    return raw.decode("cp437")


def safe_extract_path(output_dir: Path, name: str) -> Path:
    """Resolve the extraction target for an entry name.

    Backslashes are treated as separators. Absolute names, drive letters
    and any ``..`` component are rejected.

    Args:
        output_dir: Directory entries are extracted into.
        name: Display name of the entry.

    Returns:
        Target path inside output_dir.

    Raises:
        ZipFormatError: If the name would escape output_dir.
    """
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        raise ZipFormatError(f"Refusing absolute entry path: {name}")

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if ".." in parts:
        raise ZipFormatError(f"Refusing entry path with '..': {name}")
    if not parts:
        raise ZipFormatError(f"Empty entry path: {name!r}")

    return output_dir.joinpath(*parts)
