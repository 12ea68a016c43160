import logging
import pathlib

from .utils import find_repository_root

log = logging.getLogger(__name__)

GITIGNORE = '.gitignore'
RULE = '*.gpg'


def update_gitignore(directory: pathlib.Path) -> bool:
    """
    Make sure encrypted files are ignored by git.

    Only applies when the directory is the root of a git repository. Returns
    True if the .gitignore file was created or changed.
    """
    if find_repository_root(directory) is None:
        log.debug(f"{directory} is not a git repository, not updating {GITIGNORE}")
        return False

    path = directory / GITIGNORE

    if not path.exists():
        path.write_text(f"{RULE}\n")
        log.info(f"Created {GITIGNORE} with {RULE} entry")
        return True

    data = path.read_bytes()
    if RULE.encode() in data.splitlines():
        log.debug(f"{path} already contains {RULE}")
        return False

    with path.open('ab') as f:
        if data and not data.endswith(b'\n'):
            f.write(b'\n')
        f.write(RULE.encode() + b'\n')
    log.info(f"Added {RULE} to existing {GITIGNORE}")
    return True
