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
ziptools - pure Python ZIP/ZIP64 reader with an unzip-style selector.

Entries of an archive are picked with exact names or shell glob patterns
and handed to list, test or extract.
"""

__version__ = "0.2.0"

from .bitset import Bitset
from .reader import ZipReader
from .selector import PatternTable, select_entries

__all__ = ["Bitset", "PatternTable", "ZipReader", "select_entries", "__version__"]
