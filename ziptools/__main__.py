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

from __future__ import annotations

"""
Command-line interface for ziptools.

Usage:

    python -m ziptools [-hV] [-l|-t] zip-archive [file ...]

With no mode option the selected entries are extracted; ``-l`` lists
them and ``-t`` tests them. Each ``file`` argument is either an exact
entry name or a shell glob pattern (``*``, ``?``, ``[...]``); with none,
the whole archive is selected.

Example usages:

    # List everything
    python -m ziptools -l archive.zip

    # Test only the .bin entries
    python -m ziptools -t archive.zip "*.bin"

    # Extract one entry into the current directory
    python -m ziptools archive.zip "docs/readme.txt"

Exit status is 0 on success and 1 on usage errors, archive open or close
failures, allocation failures, or a failed operation.
"""

import argparse
import enum
import logging
import sys
from typing import List, NoReturn, Optional

from . import __version__
from .commands import extract_archive, list_archive, test_archive
from .config import get_config
from .constants import PROG_NAME
from .errors import AllocationError, UsageError, ZipError
from .log import setup_logging
from .reader import ZipReader
from .selector import select_entries

logger = logging.getLogger(__name__)

USAGE = f"usage: {PROG_NAME} [-hV] [-l|-t] zip-archive [file ...]"

VERSION_TEXT = (
    f"{PROG_NAME} {__version__}\n"
    "Copyright 2025 DNAi inc. - Apache License 2.0\n"
    f"{PROG_NAME} comes with ABSOLUTELY NO WARRANTY, to the extent permitted by law.\n"
)

MODE_OPTIONS = "none, -l, -t"


class RunMode(enum.Enum):
    """What to do with the selected entries."""

    EXTRACT = "extract"
    LIST = "list"
    TEST = "test"


def _print_error(message: str, exit_code: int = 1) -> NoReturn:
    """Print an error message to stderr and exit with the given code."""
    sys.stderr.write(f"{PROG_NAME}: {message}\n")
    sys.exit(exit_code)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage problems as UsageError."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


class _VersionAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        sys.stdout.write(VERSION_TEXT)
        parser.exit()


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = _ArgumentParser(
        prog=PROG_NAME,
        usage=USAGE[len("usage: "):],
        description="Extract, list or test entries of a ZIP/ZIP64 archive.",
        epilog="FILE arguments are exact entry names or shell glob patterns; "
        "without any, the whole archive is used.",
    )
    parser.add_argument("-V", "--version", action=_VersionAction, help="display version number")
    parser.add_argument(
        "-l", "--list",
        dest="modes",
        action="append_const",
        const=RunMode.LIST,
        help="list selected entries",
    )
    parser.add_argument(
        "-t", "--test",
        dest="modes",
        action="append_const",
        const=RunMode.TEST,
        help="test selected entries",
    )
    parser.add_argument("archive", nargs="?", metavar="zip-archive", help="Path to the ZIP archive")
    parser.add_argument("tokens", nargs="*", metavar="file", help="Entry name or glob pattern")
    return parser


def _resolve_mode(modes: Optional[List[RunMode]]) -> RunMode:
    """Collapse the mode options into one RunMode.

    Raises:
        UsageError: If more than one mode option was given.
    """
    if not modes:
        return RunMode.EXTRACT
    if len(modes) > 1:
        raise UsageError(f"only one mode selection allowed ({MODE_OPTIONS})")
    return modes[0]


def _run(archive: ZipReader, mode: RunMode, tokens: List[str], extract_dir: str) -> int:
    with select_entries(archive, tokens) as selected:
        logger.debug("running %s on %d entries", mode.value, selected.count())
        if mode is RunMode.LIST:
            return list_archive(archive, selected)
        if mode is RunMode.TEST:
            return test_archive(archive, selected)
        return extract_archive(archive, selected, dest=extract_dir)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the ziptools CLI.

    This function is invoked when running:

        python -m ziptools ...

    or, via the console script:

        ziptools-unzip ...

    Returns:
        Process exit status.
    """
    if argv is None:
        argv = sys.argv[1:]

    config = get_config()
    setup_logging(config.log_level)

    parser = _build_parser()
    try:
        args = parser.parse_intermixed_args(argv)
        mode = _resolve_mode(args.modes)
        if args.archive is None:
            raise UsageError("no archive given")
    except UsageError as e:
        sys.stderr.write(f"{USAGE}\n")
        _print_error(str(e))

    try:
        archive = ZipReader(args.archive)
    except (OSError, ZipError) as e:
        _print_error(f"cannot open zip archive '{args.archive}': {e}")

    try:
        status = _run(archive, mode, args.tokens, config.extract_dir)
    except AllocationError as e:
        _print_error(f"cannot allocate memory: {e}")
    finally:
        try:
            archive.close()
        except ZipError as e:
            _print_error(f"cannot close zip archive '{args.archive}': {e}")

    return status


if __name__ == "__main__":
    raise SystemExit(main())
