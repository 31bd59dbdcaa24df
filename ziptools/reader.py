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
Read-only ZIP archive access.

This module provides the ZipReader class. Entries are kept in central
directory order and addressed by index; names are raw bytes and need not
be unique.
"""

import io
import logging
import os
import struct
import zlib
from typing import BinaryIO, Iterator, Optional

from .constants import (
    COMP_DEFLATE,
    COMP_STORED,
    END_OF_CENTRAL_DIR_SIZE,
    EOCD_SIGNATURE_BYTES,
    FLAG_ENCRYPTED,
    MAX_ENTRIES,
    MAX_EOCD_SCAN,
    ZIP64_LOCATOR_SIZE,
    ZIP64_MARKER_16,
    ZIP64_MARKER_32,
)
from .errors import (
    ZipCompressionError,
    ZipCrcError,
    ZipError,
    ZipFormatError,
    ZipUnsupportedFeature,
)
from .structures import (
    EndOfCentralDirectory,
    Zip64EndOfCentralDirectory,
    ZipEntry,
    parse_central_directory_header,
    parse_eocd,
    parse_local_file_header,
    parse_zip64_eocd,
    parse_zip64_extra_field,
    parse_zip64_locator,
)
from .utils import crc32, decode_name, read_exact

logger = logging.getLogger(__name__)


class ZipReader:
    """Read-only handle on a ZIP or ZIP64 archive.

    The entry list is loaded once at open time; its length and order do
    not change while the handle is open.

    Example:
        with ZipReader("archive.zip") as z:
            index = z.name_locate(b"file.txt")
            if index is not None:
                data = z.read(index)
    """

    def __init__(self, file: str | os.PathLike | BinaryIO):
        """Open an archive from a path or a seekable binary file object.

        Args:
            file: Path to the archive, or a binary file-like object.

        Raises:
            OSError: If the path cannot be opened.
            ZipFormatError: If the file is not a readable ZIP archive.
        """
        if hasattr(file, "__fspath__"):
            file = os.fspath(file)

        if isinstance(file, (str, bytes)):
            self._file: Optional[BinaryIO] = open(file, "rb")
            self._should_close = True
            self.filename = os.fsdecode(file)
        else:
            for method in ("read", "seek", "tell"):
                if not hasattr(file, method):
                    raise ZipFormatError(f"File-like object must have a {method}() method")
            self._file = file
            self._should_close = False
            self.filename = getattr(file, "name", "<stream>")

        self._entries: list[ZipEntry] = []
        self._eocd: Optional[EndOfCentralDirectory] = None
        self._zip64_eocd: Optional[Zip64EndOfCentralDirectory] = None
        self._closed = False

        try:
            self._parse_archive()
        except Exception:
            if self._should_close and self._file is not None:
                self._file.close()
                self._file = None
            raise

        logger.debug("opened %s with %d entries", self.filename, len(self._entries))

    def _require_open(self) -> BinaryIO:
        if self._closed or self._file is None:
            raise ZipFormatError("Archive is closed")
        return self._file

    def _file_size(self) -> int:
        f = self._require_open()
        f.seek(0, io.SEEK_END)
        return f.tell()

    @staticmethod
    def _eocd_position(tail: bytes) -> int:
        """Offset in ``tail`` of the EOCD record whose comment ends the file.

        The comment may itself contain the EOCD signature, so candidates are
        tried from the end until one's comment length reaches exactly EOF.
        An archive with trailing bytes after the comment falls back to the
        last complete record found.
        """
        fallback = -1
        pos = tail.rfind(EOCD_SIGNATURE_BYTES)
        while pos != -1:
            if pos + END_OF_CENTRAL_DIR_SIZE <= len(tail):
                (comment_len,) = struct.unpack_from("<H", tail, pos + END_OF_CENTRAL_DIR_SIZE - 2)
                if pos + END_OF_CENTRAL_DIR_SIZE + comment_len == len(tail):
                    return pos
                if fallback == -1:
                    fallback = pos
            pos = tail.rfind(EOCD_SIGNATURE_BYTES, 0, pos)
        if fallback == -1:
            raise ZipFormatError("End of Central Directory record not found")
        return fallback

    def _find_eocd(self) -> EndOfCentralDirectory:
        """Locate the End of Central Directory record by scanning backward.

        Also picks up the ZIP64 EOCD when a ZIP64 locator immediately
        precedes the classic record.
        """
        f = self._require_open()
        file_size = self._file_size()
        scan = min(MAX_EOCD_SCAN, file_size)
        f.seek(file_size - scan)
        tail = f.read(scan)

        eocd_pos = self._eocd_position(tail)
        absolute_pos = file_size - scan + eocd_pos

        if absolute_pos >= ZIP64_LOCATOR_SIZE:
            f.seek(absolute_pos - ZIP64_LOCATOR_SIZE)
            try:
                locator = parse_zip64_locator(f)
            except ZipFormatError:
                locator = None
            if locator is not None:
                if not 0 <= locator.zip64_eocd_offset < file_size:
                    raise ZipFormatError(
                        f"Invalid ZIP64 EOCD offset: {locator.zip64_eocd_offset} (file size: {file_size})"
                    )
                f.seek(locator.zip64_eocd_offset)
                self._zip64_eocd = parse_zip64_eocd(f)

        f.seek(absolute_pos)
        return parse_eocd(f)

    def _parse_central_directory(self) -> None:
        f = self._require_open()
        eocd = self._eocd
        if eocd is None:
            raise ZipFormatError("EOCD not found")

        if self._zip64_eocd is not None:
            cd_offset = self._zip64_eocd.cd_offset
            cd_size = self._zip64_eocd.cd_size
            num_entries = self._zip64_eocd.cd_records_total
        else:
            cd_offset = eocd.cd_offset
            cd_size = eocd.cd_size
            num_entries = eocd.cd_records_total
            if ZIP64_MARKER_32 in (cd_offset, cd_size) or num_entries == ZIP64_MARKER_16:
                raise ZipFormatError("ZIP64 values present but no ZIP64 EOCD record found")

        if num_entries > MAX_ENTRIES:
            raise ZipFormatError(f"Entry count too large: {num_entries} (max {MAX_ENTRIES:,})")

        file_size = self._file_size()
        if cd_offset + cd_size > file_size or (num_entries and cd_offset >= file_size):
            raise ZipFormatError(
                f"Central directory extends beyond file: offset {cd_offset}, "
                f"size {cd_size} (file size: {file_size})"
            )

        f.seek(cd_offset)
        for index in range(num_entries):
            header = parse_central_directory_header(f)

            uncompressed_size = header.uncompressed_size
            compressed_size = header.compressed_size
            local_header_offset = header.local_header_offset
            zip64_extra = parse_zip64_extra_field(header.extra, header)
            if zip64_extra is not None:
                if zip64_extra.original_size is not None:
                    uncompressed_size = zip64_extra.original_size
                if zip64_extra.compressed_size is not None:
                    compressed_size = zip64_extra.compressed_size
                if zip64_extra.local_header_offset is not None:
                    local_header_offset = zip64_extra.local_header_offset

            name = decode_name(header.filename, header.flags)
            # Unix mode bits live in the high word of the external attributes
            is_dir = name.endswith("/") or bool((header.external_attrs >> 16) & 0o040000)

            self._entries.append(
                ZipEntry(
                    index=index,
                    raw_name=header.filename,
                    name=name,
                    is_dir=is_dir,
                    compressed_size=compressed_size,
                    uncompressed_size=uncompressed_size,
                    crc32=header.crc32,
                    compression_method=header.compression_method,
                    flags=header.flags,
                    mod_date=header.mod_date,
                    mod_time=header.mod_time,
                    local_header_offset=local_header_offset,
                    comment=header.comment,
                )
            )

    def _parse_archive(self) -> None:
        self._eocd = self._find_eocd()
        self._parse_central_directory()

    @property
    def comment(self) -> bytes:
        """Archive comment from the End of Central Directory record."""
        return self._eocd.comment if self._eocd is not None else b""

    def get_num_entries(self) -> int:
        """Return the number of entries, fixed at open time."""
        return len(self._entries)

    def get_entry(self, index: int) -> ZipEntry:
        """Return the metadata for entry ``index``.

        Raises:
            IndexError: If index is outside 0..get_num_entries()-1.
        """
        if not 0 <= index < len(self._entries):
            raise IndexError(f"Entry index out of range: {index}")
        return self._entries[index]

    def get_name(self, index: int) -> bytes:
        """Return the raw name of entry ``index``."""
        return self.get_entry(index).raw_name

    def entries(self) -> Iterator[ZipEntry]:
        """Iterate over entries in central directory order."""
        return iter(self._entries)

    def name_locate(self, name: bytes | str) -> Optional[int]:
        """Find the index of the first entry whose name is exactly ``name``.

        Lookup is by raw bytes in directory order, so among duplicate names
        the lowest index is returned. ``str`` names are encoded with the
        filesystem encoding first.

        Returns:
            Entry index, or None if no entry has that name.
        """
        if isinstance(name, str):
            name = os.fsencode(name)
        for entry in self._entries:
            if entry.raw_name == name:
                return entry.index
        return None

    def _read_compressed(self, entry: ZipEntry) -> bytes:
        f = self._require_open()
        file_size = self._file_size()

        if not 0 <= entry.local_header_offset < file_size:
            raise ZipFormatError(
                f"Invalid local header offset for entry '{entry.name}': "
                f"{entry.local_header_offset} (file size: {file_size})"
            )
        f.seek(entry.local_header_offset)
        local_header = parse_local_file_header(f)
        f.seek(local_header.extra_len, io.SEEK_CUR)

        # Sizes in the local header may be zero (data descriptor) or
        # saturated (ZIP64); the central directory values are authoritative.
        start = f.tell()
        if start + entry.compressed_size > file_size:
            raise ZipFormatError(
                f"Compressed data extends beyond file for entry '{entry.name}': "
                f"position {start}, size {entry.compressed_size} (file size: {file_size})"
            )
        return read_exact(f, entry.compressed_size)

    def read(self, index: int) -> bytes:
        """Return the decompressed, CRC-checked data of entry ``index``.

        Raises:
            IndexError: If index is out of range.
            ZipFormatError: If the archive is closed or the entry data is damaged.
            ZipUnsupportedFeature: If the entry is encrypted or uses an unknown method.
            ZipCompressionError: If inflating fails.
            ZipCrcError: If the CRC32 does not match.
        """
        entry = self.get_entry(index)
        if entry.flags & FLAG_ENCRYPTED:
            raise ZipUnsupportedFeature(f"Entry '{entry.name}' is encrypted (encryption not supported)")
        if entry.compression_method not in (COMP_STORED, COMP_DEFLATE):
            raise ZipUnsupportedFeature(
                f"Unsupported compression method: {entry.compression_method}"
            )

        compressed = self._read_compressed(entry)
        if entry.compression_method == COMP_STORED:
            data = compressed
        else:
            try:
                decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
                data = decompressor.decompress(compressed) + decompressor.flush()
            except zlib.error as e:
                raise ZipCompressionError(f"Deflate decompression failed: {e}") from e
            if not decompressor.eof:
                raise ZipCompressionError("Deflate stream is truncated")

        if len(data) != entry.uncompressed_size:
            raise ZipFormatError(
                f"Size mismatch for entry '{entry.name}': "
                f"expected {entry.uncompressed_size}, got {len(data)}"
            )
        actual_crc = crc32(data)
        if actual_crc != entry.crc32:
            raise ZipCrcError(
                f"CRC32 mismatch: expected 0x{entry.crc32:08X}, got 0x{actual_crc:08X}"
            )
        logger.debug("read entry %d (%s), %d bytes", index, entry.name, len(data))
        return data

    def close(self) -> None:
        """Close the archive.

        Safe to call more than once.

        Raises:
            ZipError: If the underlying file reports an error on close.
        """
        if self._closed:
            return
        self._closed = True
        f, self._file = self._file, None
        if self._should_close and f is not None:
            try:
                f.close()
            except OSError as e:
                raise ZipError(f"Error closing archive {self.filename}: {e}") from e

    def __enter__(self) -> "ZipReader":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
