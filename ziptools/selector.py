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
Entry selection from command-line names and glob patterns.

select_entries() turns the tokens given after the archive path into a
Bitset of entry indices:

1. No tokens selects every entry.
2. Tokens without glob characters are looked up by exact name; the
   lowest matching index is selected and the token counts as matched.
3. Every entry is then tested against the glob tokens in order; the
   first one that matches selects the entry and is credited with the
   match.
4. Tokens that matched nothing are reported on the errors stream.

Matching is done on raw name bytes, case-sensitively, with no special
treatment of ``/`` or leading dots. ``[^...]`` negates a bracket
expression just like ``[!...]``.
"""

import fnmatch
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Iterator, Optional, Protocol, Sequence, TextIO

from .bitset import Bitset
from .constants import GLOB_CHARS, PROG_NAME
from .errors import AllocationError

logger = logging.getLogger(__name__)


class ArchiveListing(Protocol):
    """What the selector needs from an open archive."""

    def get_num_entries(self) -> int: ...

    def get_name(self, index: int) -> bytes: ...

    def name_locate(self, name: bytes) -> Optional[int]: ...

    def close(self) -> None: ...


def is_glob(token: str) -> bool:
    """Return True if ``token`` contains any of ``*``, ``?`` or ``[``."""
    return any(c in token for c in GLOB_CHARS)


def shell_pattern(raw: bytes) -> bytes:
    """Rewrite ``[^...]`` bracket expressions to the ``[!...]`` form.

    fnmatch(3) and shells read a leading ``^`` in a bracket as negation;
    the fnmatch module only knows ``!`` and would match ``^`` literally.
    A ``[`` with no closing ``]`` is an ordinary character and is left alone.
    """
    out = bytearray(raw)
    i, n = 0, len(raw)
    while i < n:
        if raw[i:i + 1] != b"[":
            i += 1
            continue
        j = i + 1
        if raw[j:j + 1] in (b"!", b"^"):
            j += 1
        if raw[j:j + 1] == b"]":
            j += 1
        close = raw.find(b"]", j)
        if close == -1:
            i += 1
            continue
        if raw[i + 1:i + 2] == b"^":
            out[i + 1] = ord("!")
        i = close + 1
    return bytes(out)


@dataclass
class Pattern:
    """Bookkeeping for one token during a selection run."""

    text: str
    raw: bytes
    is_glob: bool
    matched: bool = False
    glob: bytes = field(init=False, repr=False)

    def __post_init__(self):
        self.glob = shell_pattern(self.raw)

    def matches(self, name: bytes) -> bool:
        return fnmatch.fnmatchcase(name, self.glob)


class PatternTable:
    """The tokens of one selection run, in command-line order."""

    def __init__(self, tokens: Sequence[str]):
        try:
            self._patterns = [
                Pattern(text=token, raw=os.fsencode(token), is_glob=is_glob(token))
                for token in tokens
            ]
        except MemoryError as e:
            raise AllocationError(f"Cannot allocate pattern table for {len(tokens)} tokens") from e

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __getitem__(self, position: int) -> Pattern:
        return self._patterns[position]

    def locate_literals(self, archive: ArchiveListing, selected: Bitset, errors: TextIO) -> None:
        """Select the entry named by each literal token.

        A literal that names no entry is reported and skipped.
        """
        for pattern in self._patterns:
            if pattern.is_glob:
                continue
            index = archive.name_locate(pattern.raw)
            if index is None:
                errors.write(f"{PROG_NAME}: {pattern.text}: no entry with this exact name\n")
                continue
            logger.debug("literal %r located at index %d", pattern.text, index)
            selected.set(index)
            pattern.matched = True

    def match_entries(self, archive: ArchiveListing, selected: Bitset) -> None:
        """Test every entry against the glob tokens; the first match wins.

        Literal tokens were settled by locate_literals() and are not
        re-tested, so a literal never selects a later duplicate.
        """
        globs = [pattern for pattern in self._patterns if pattern.is_glob]
        if not globs:
            return
        for index in range(archive.get_num_entries()):
            name = archive.get_name(index)
            for pattern in globs:
                if pattern.matches(name):
                    logger.debug("entry %d %r matched by %r", index, name, pattern.text)
                    selected.set(index)
                    pattern.matched = True
                    break

    def unmatched(self) -> list[Pattern]:
        """Tokens that selected nothing, in command-line order."""
        return [pattern for pattern in self._patterns if not pattern.matched]


def select_entries(
    archive: ArchiveListing,
    tokens: Sequence[str],
    errors: Optional[TextIO] = None,
) -> Bitset:
    """Compute the set of entries the tokens refer to.

    Args:
        archive: Open archive providing entry names by index.
        tokens: Names or glob patterns from the command line. Empty means
            the whole archive.
        errors: Stream for diagnostics (default: sys.stderr).

    Returns:
        Bitset sized to the archive's entry count. The caller owns it.

    Raises:
        AllocationError: If the selection structures cannot be allocated.
    """
    if errors is None:
        errors = sys.stderr

    selected = Bitset(archive.get_num_entries())
    if not tokens:
        selected.set_all()
        return selected

    try:
        patterns = PatternTable(tokens)
        patterns.locate_literals(archive, selected, errors)
        patterns.match_entries(archive, selected)
    except BaseException:
        selected.release()
        raise

    for pattern in patterns.unmatched():
        errors.write(f"{PROG_NAME}: caution: filename not matched: {pattern.text}\n")

    logger.debug("selected %d of %d entries", selected.count(), len(selected))
    return selected
