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
Constants shared by the reader, the selection engine and the CLI.

Record signatures and sizes follow the ZIP application note; only the
records needed to read an archive are listed.
"""

PROG_NAME = "ziptools"

# ZIP record signatures
LOCAL_FILE_HEADER = 0x04034B50  # "PK\x03\x04"
CENTRAL_DIR_HEADER = 0x02014B50  # "PK\x01\x02"
END_OF_CENTRAL_DIR = 0x06054B50  # "PK\x05\x06"
ZIP64_END_OF_CENTRAL_DIR = 0x06064B50  # "PK\x06\x06"
ZIP64_END_OF_CENTRAL_DIR_LOCATOR = 0x07064B50  # "PK\x06\x07"

EOCD_SIGNATURE_BYTES = b"PK\x05\x06"

# Fixed record sizes (excluding variable-length trailers)
END_OF_CENTRAL_DIR_SIZE = 22
ZIP64_LOCATOR_SIZE = 20

# EOCD plus the largest possible archive comment
MAX_EOCD_SCAN = END_OF_CENTRAL_DIR_SIZE + 0xFFFF

# Compression methods
COMP_STORED = 0
COMP_DEFLATE = 8

# Column labels used by the listing
METHOD_LABELS = {
    COMP_STORED: "Stored",
    COMP_DEFLATE: "Defl:N",
}

# General purpose bit flags
FLAG_ENCRYPTED = 0x0001
FLAG_UTF8 = 0x0800

# Values that defer to the ZIP64 extra field
ZIP64_EXTRA_FIELD_TAG = 0x0001
ZIP64_MARKER_16 = 0xFFFF
ZIP64_MARKER_32 = 0xFFFFFFFF

# Upper bound on central directory records we are willing to load
MAX_ENTRIES = 10_000_000

# Characters that turn a command-line token into a glob pattern
GLOB_CHARS = "*?["
