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
Exception classes for ziptools.

Archive problems derive from ZipError. AllocationError and UsageError are
the fatal conditions the command-line tool turns into exit status 1.
"""


class ZipError(Exception):
    """Base exception class for all ziptools errors."""

    pass


class ZipFormatError(ZipError):
    """Raised when an archive has an invalid format or structure.

    This exception is raised when:
    - Required signatures are missing or incorrect
    - The central directory is truncated or points outside the file
    - Entry counts or offsets are out of range
    """

    pass


class ZipUnsupportedFeature(ZipError):
    """Raised when an entry uses a feature the reader does not implement.

    Encrypted entries and compression methods other than stored and
    deflate end up here.
    """

    pass


class ZipCrcError(ZipError):
    """Raised when the CRC32 of decompressed data does not match the archive."""

    pass


class ZipCompressionError(ZipError):
    """Raised when compressed entry data cannot be inflated."""

    pass


class AllocationError(ZipError):
    """Raised when the selection structures cannot be allocated.

    This covers sizes that cannot be represented (negative or non-integer
    entry counts) as well as running out of memory.
    """

    pass


class UsageError(ZipError):
    """Raised for command-line usage problems.

    This exception is raised when:
    - More than one mode option is given
    - No archive path is given
    - An unknown option is given
    """

    pass
