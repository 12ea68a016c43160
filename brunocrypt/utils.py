import pathlib
import typing

import click
import git


class BrunocryptException(click.ClickException):
    pass


class ConfigurationError(BrunocryptException):
    pass


class ProviderUnavailable(BrunocryptException):
    pass


def find_repository_root(directory: pathlib.Path) -> typing.Optional[pathlib.Path]:
    """
    Return the directory if it is the working tree root of a git repository.

    Parent directories are not searched, and bare repositories don't count as
    they have no working tree to ignore files in. A .git file (worktrees and
    submodules) counts, as long as its working tree is this directory.
    """
    try:
        repo = git.Repo(directory)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return None

    if repo.bare:
        return None

    root = pathlib.Path(repo.working_tree_dir).resolve()
    if root != directory.resolve():
        return None
    return root
