"""
Apply one transform to every matching file below a directory.

Each file is handled on its own: a failure is logged and counted, and the
batch carries on with the next file.
"""

import enum
import logging
import pathlib
import typing

import attr
import click

from .discovery import ENCRYPTED, PLAINTEXT, Paths, find_files
from .gpg import GPG, Provider, ProviderError, decrypted_path
from .hygiene import update_gitignore
from .log import success
from .utils import ConfigurationError

log = logging.getLogger(__name__)

AFFIRMATIVE = frozenset({'y', 'yes'})
PROMPT = "Do you really want to delete these files? [y/N]: "


class Mode(enum.Enum):
    ENCRYPT = 'encrypt'
    DECRYPT = 'decrypt'
    CLEAN = 'clean'


def _absolute_directory(instance, attribute, value: pathlib.Path) -> None:
    if not value.is_absolute():
        raise ConfigurationError(f"Directory must be an absolute path: {value}")
    if not value.is_dir():
        raise ConfigurationError(f"Directory does not exist: {value}")


@attr.s(frozen=True, kw_only=True)
class Config:
    mode: Mode = attr.ib(validator=attr.validators.instance_of(Mode))
    directory: pathlib.Path = attr.ib(validator=_absolute_directory)
    force: bool = attr.ib(default=False)
    recipient: typing.Optional[str] = attr.ib(default=None)

    def __attrs_post_init__(self):
        if self.mode is Mode.ENCRYPT and not self.recipient:
            raise ConfigurationError("Recipient is required for encryption")
        if self.mode is not Mode.ENCRYPT and self.recipient is not None:
            raise ConfigurationError(
                f"A recipient can only be used for encryption, not {self.mode.value}")


@attr.s(frozen=True)
class Success:
    path: pathlib.Path = attr.ib()
    produced: typing.Optional[pathlib.Path] = attr.ib(default=None)

    ok = True


@attr.s(frozen=True)
class Failure:
    path: pathlib.Path = attr.ib()
    cause: Exception = attr.ib()

    ok = False


Outcome = typing.Union[Success, Failure]


@attr.s(frozen=True)
class BatchResult:
    outcomes: typing.Tuple[Outcome, ...] = attr.ib(default=(), converter=tuple)
    cancelled: bool = attr.ib(default=False)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def failures(self) -> typing.Tuple[Failure, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, Failure))


@attr.s(frozen=True)
class Engine:
    config: Config = attr.ib()
    provider: Provider = attr.ib(factory=GPG)
    stdin: typing.TextIO = attr.ib(factory=lambda: click.get_text_stream('stdin'))

    @property
    def directory(self) -> pathlib.Path:
        return self.config.directory

    def run(self) -> BatchResult:
        operation = {
            Mode.ENCRYPT: self.encrypt,
            Mode.DECRYPT: self.decrypt,
            Mode.CLEAN: self.clean,
        }[self.config.mode]
        return operation()

    def discover(self, name: str) -> Paths:
        paths = find_files(self.directory, name)
        if not paths:
            log.warning(f"No {name} files found in {self.directory}")
        return paths

    def encrypt(self) -> BatchResult:
        self.provider.check()
        log.info(f"Encrypting {PLAINTEXT} files in: {self.directory}")

        outcomes: typing.List[Outcome] = []
        for path in self.discover(PLAINTEXT):
            outcomes.append(self.encrypt_file(path))
        result = BatchResult(outcomes)

        if result.succeeded > 0:
            update_gitignore(self.directory)
            success(log, f"Encrypted {result.succeeded} {PLAINTEXT} file(s)")
        return result

    def encrypt_file(self, path: pathlib.Path) -> Outcome:
        assert self.config.recipient is not None
        log.info(f"Encrypting: {path} -> {path}.gpg")
        try:
            produced = self.provider.encrypt(path, self.config.recipient)
        except (ProviderError, OSError) as error:
            log.error(f"Failed to encrypt: {path}")
            log.debug(f"{path}: {error}")
            return Failure(path, error)
        success(log, f"Encrypted: {produced}")
        return Success(path, produced)

    def decrypt(self) -> BatchResult:
        self.provider.check()
        log.info(f"Decrypting {ENCRYPTED} files in: {self.directory}")

        outcomes: typing.List[Outcome] = []
        for path in self.discover(ENCRYPTED):
            outcomes.append(self.decrypt_file(path))
        result = BatchResult(outcomes)

        if result.succeeded > 0:
            success(log, f"Decrypted {result.succeeded} {ENCRYPTED} file(s)")
        return result

    def decrypt_file(self, path: pathlib.Path) -> Outcome:
        log.info(f"Decrypting: {path} -> {decrypted_path(path)}")
        try:
            produced = self.provider.decrypt(path)
        except (ProviderError, OSError) as error:
            log.error(f"Failed to decrypt: {path}")
            log.debug(f"{path}: {error}")
            return Failure(path, error)
        success(log, f"Decrypted: {produced}")
        return Success(path, produced)

    def clean(self) -> BatchResult:
        log.info(f"Looking for {PLAINTEXT} files to clean in: {self.directory}")

        paths = self.discover(PLAINTEXT)
        if not paths:
            return BatchResult()

        click.secho(f"The following {PLAINTEXT} files will be deleted:", fg='yellow')
        for path in paths:
            click.echo(f"  {path}")

        if not self.config.force and not self.confirm():
            log.info("Operation cancelled")
            return BatchResult(cancelled=True)

        result = BatchResult(self.delete_file(path) for path in paths)
        success(log, f"Deleted {result.succeeded} {PLAINTEXT} file(s)")
        return result

    def confirm(self) -> bool:
        click.echo()
        click.echo(PROMPT, nl=False)
        answer = self.stdin.readline()
        if not answer.endswith('\n'):
            # Keep the next log line off the prompt line when input ends early.
            click.echo()
        return answer.strip().lower() in AFFIRMATIVE

    def delete_file(self, path: pathlib.Path) -> Outcome:
        try:
            path.unlink()
        except OSError as error:
            log.error(f"Failed to delete: {path}")
            log.debug(f"{path}: {error}")
            return Failure(path, error)
        success(log, f"Deleted: {path}")
        return Success(path)

