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
ZIP record definitions and parsers.

Only the records needed to enumerate and read entries are modelled:
end of central directory (classic and ZIP64), the ZIP64 locator, central
directory headers and local file headers.
"""

import struct
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Optional

from .constants import (
    CENTRAL_DIR_HEADER,
    END_OF_CENTRAL_DIR,
    LOCAL_FILE_HEADER,
    ZIP64_END_OF_CENTRAL_DIR,
    ZIP64_END_OF_CENTRAL_DIR_LOCATOR,
    ZIP64_EXTRA_FIELD_TAG,
    ZIP64_MARKER_32,
)
from .errors import ZipFormatError
from .utils import dos_datetime_to_timestamp, read_exact, read_struct

# Fixed parts, signature included
_EOCD_FORMAT = "<IHHHHIIH"
_ZIP64_EOCD_FORMAT = "<IQHHIIQQQQ"
_ZIP64_LOCATOR_FORMAT = "<IIQI"
_CENTRAL_DIR_FORMAT = "<IHHHHHHIIIHHHHHII"
_LOCAL_HEADER_FORMAT = "<IHHHHHIIIHH"


@dataclass
class EndOfCentralDirectory:
    """End of Central Directory record."""

    disk_num: int
    cd_disk: int
    cd_records_on_disk: int
    cd_records_total: int
    cd_size: int
    cd_offset: int
    comment: bytes


@dataclass
class Zip64EndOfCentralDirectory:
    """ZIP64 End of Central Directory record (fields that matter to a reader)."""

    disk_num: int
    cd_disk: int
    cd_records_on_disk: int
    cd_records_total: int
    cd_size: int
    cd_offset: int


@dataclass
class Zip64Locator:
    """Points at the ZIP64 End of Central Directory record."""

    disk_num: int
    zip64_eocd_offset: int
    total_disks: int


@dataclass
class Zip64ExtraField:
    """64-bit values carried in the ZIP64 extra field.

    A value is present only when the matching 32-bit header field holds
    0xFFFFFFFF.
    """

    original_size: Optional[int] = None
    compressed_size: Optional[int] = None
    local_header_offset: Optional[int] = None


@dataclass
class CentralDirectoryHeader:
    """Central directory file header."""

    version_made_by: int
    version: int
    flags: int
    compression_method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    disk_num: int
    internal_attrs: int
    external_attrs: int
    local_header_offset: int
    filename: bytes
    extra: bytes
    comment: bytes


@dataclass
class LocalFileHeader:
    """Local file header; only what is needed to find the entry data."""

    flags: int
    compression_method: int
    filename_len: int
    extra_len: int


@dataclass
class ZipEntry:
    """One entry of an archive, addressed by its central directory index.

    ``raw_name`` is the name exactly as stored and is what selection
    matches against. ``name`` is a decoded copy for display.
    """

    index: int
    raw_name: bytes
    name: str
    is_dir: bool
    compressed_size: int
    uncompressed_size: int
    crc32: int
    compression_method: int
    flags: int
    mod_date: int
    mod_time: int
    local_header_offset: int
    comment: bytes = b""

    @property
    def date_time(self) -> datetime:
        """Get modification date/time as datetime object."""
        return dos_datetime_to_timestamp(self.mod_date, self.mod_time)


def _check_signature(found: int, expected: int, what: str) -> None:
    if found != expected:
        raise ZipFormatError(
            f"Invalid {what} signature: 0x{found:08X}, expected 0x{expected:08X}"
        )


def parse_eocd(f: BinaryIO) -> EndOfCentralDirectory:
    """Parse an End of Central Directory record from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or the record is truncated.
    """
    (signature, disk_num, cd_disk, on_disk, total,
     cd_size, cd_offset, comment_len) = read_struct(f, _EOCD_FORMAT)
    _check_signature(signature, END_OF_CENTRAL_DIR, "EOCD")

    return EndOfCentralDirectory(
        disk_num=disk_num,
        cd_disk=cd_disk,
        cd_records_on_disk=on_disk,
        cd_records_total=total,
        cd_size=cd_size,
        cd_offset=cd_offset,
        comment=read_exact(f, comment_len),
    )


def parse_zip64_eocd(f: BinaryIO) -> Zip64EndOfCentralDirectory:
    """Parse a ZIP64 End of Central Directory record from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or the record is truncated.
    """
    (signature, _size, _made_by, _needed, disk_num, cd_disk,
     on_disk, total, cd_size, cd_offset) = read_struct(f, _ZIP64_EOCD_FORMAT)
    _check_signature(signature, ZIP64_END_OF_CENTRAL_DIR, "ZIP64 EOCD")

    return Zip64EndOfCentralDirectory(
        disk_num=disk_num,
        cd_disk=cd_disk,
        cd_records_on_disk=on_disk,
        cd_records_total=total,
        cd_size=cd_size,
        cd_offset=cd_offset,
    )


def parse_zip64_locator(f: BinaryIO) -> Zip64Locator:
    """Parse a ZIP64 locator from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or the record is truncated.
    """
    signature, disk_num, offset, total_disks = read_struct(f, _ZIP64_LOCATOR_FORMAT)
    _check_signature(signature, ZIP64_END_OF_CENTRAL_DIR_LOCATOR, "ZIP64 locator")
    return Zip64Locator(disk_num=disk_num, zip64_eocd_offset=offset, total_disks=total_disks)


def parse_central_directory_header(f: BinaryIO) -> CentralDirectoryHeader:
    """Parse a central directory header from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or the header is truncated.
    """
    (signature, made_by, version, flags, method, mod_time, mod_date,
     crc, csize, usize, name_len, extra_len, comment_len,
     disk_num, internal_attrs, external_attrs, offset) = read_struct(f, _CENTRAL_DIR_FORMAT)
    _check_signature(signature, CENTRAL_DIR_HEADER, "central directory header")

    filename = read_exact(f, name_len)
    extra = read_exact(f, extra_len)
    comment = read_exact(f, comment_len)

    return CentralDirectoryHeader(
        version_made_by=made_by,
        version=version,
        flags=flags,
        compression_method=method,
        mod_time=mod_time,
        mod_date=mod_date,
        crc32=crc,
        compressed_size=csize,
        uncompressed_size=usize,
        disk_num=disk_num,
        internal_attrs=internal_attrs,
        external_attrs=external_attrs,
        local_header_offset=offset,
        filename=filename,
        extra=extra,
        comment=comment,
    )


def parse_local_file_header(f: BinaryIO) -> LocalFileHeader:
    """Parse a local file header, leaving the file positioned after its name.

    The caller skips ``extra_len`` bytes to reach the entry data.

    Raises:
        ZipFormatError: If the signature is invalid or the header is truncated.
    """
    (signature, _version, flags, method, _mod_time, _mod_date,
     _crc, _csize, _usize, name_len, extra_len) = read_struct(f, _LOCAL_HEADER_FORMAT)
    _check_signature(signature, LOCAL_FILE_HEADER, "local file header")
    read_exact(f, name_len)

    return LocalFileHeader(
        flags=flags,
        compression_method=method,
        filename_len=name_len,
        extra_len=extra_len,
    )


def parse_zip64_extra_field(
    extra_data: bytes, header: CentralDirectoryHeader
) -> Optional[Zip64ExtraField]:
    """Extract the ZIP64 extra field for a central directory header.

    Only the values whose 32-bit counterpart in ``header`` is saturated are
    read, in the order the application note defines.

    Returns:
        Zip64ExtraField if the archive carries one, None otherwise.
    """
    pos = 0
    while pos + 4 <= len(extra_data):
        tag, size = struct.unpack_from("<HH", extra_data, pos)
        pos += 4
        if pos + size > len(extra_data):
            break
        if tag != ZIP64_EXTRA_FIELD_TAG:
            pos += size
            continue

        field_data = extra_data[pos : pos + size]
        field = Zip64ExtraField()
        field_pos = 0
        for attr, value in (
            ("original_size", header.uncompressed_size),
            ("compressed_size", header.compressed_size),
            ("local_header_offset", header.local_header_offset),
        ):
            if value != ZIP64_MARKER_32:
                continue
            if field_pos + 8 > len(field_data):
                raise ZipFormatError("Truncated ZIP64 extra field")
            setattr(field, attr, struct.unpack_from("<Q", field_data, field_pos)[0])
            field_pos += 8
        return field

    return None
