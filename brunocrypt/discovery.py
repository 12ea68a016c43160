"""
Find the files a batch operates on.
"""

import logging
import os
import pathlib
import typing

log = logging.getLogger(__name__)

PLAINTEXT = '.env'
ENCRYPTED = '.env.gpg'

Paths = typing.Tuple[pathlib.Path, ...]


def _skip(error: OSError) -> None:
    log.debug(f"Skipping {error.filename}: {error.strerror}")


def walk(directory: pathlib.Path, name: str) -> typing.Iterator[pathlib.Path]:
    """
    Yield files named exactly `name` anywhere below `directory`.

    Hidden directories are searched. Directories that can't be read and
    broken symlinks are skipped rather than ending the search. Symlinked
    directories are not followed.
    """
    for root, _, files in os.walk(directory, onerror=_skip):
        if name not in files:
            continue

        path = pathlib.Path(root, name)
        if path.is_file():
            yield path
        else:
            log.debug(f"Skipping {path} as it is not a regular file")


def find_files(directory: pathlib.Path, name: str) -> Paths:
    """Find matching files, sorted by their full path."""
    log.debug(f"Searching for {name} files in {directory}")
    paths = tuple(sorted(walk(directory, name)))
    log.debug(f"Found {len(paths)} {name} files in {directory}")
    return paths
