import logging
import os
import pathlib
import shutil
import subprocess
import typing

import attr

from .utils import ProviderUnavailable

log = logging.getLogger(__name__)

SUFFIX = '.gpg'


class ProviderError(Exception):
    """A single encryption or decryption call failed."""


def encrypted_path(path: pathlib.Path) -> pathlib.Path:
    return path.with_name(path.name + SUFFIX)


def decrypted_path(path: pathlib.Path) -> pathlib.Path:
    """Strip exactly one trailing '.gpg' from a path."""
    if not path.name.endswith(SUFFIX) or path.name == SUFFIX:
        raise ValueError(f"{path} does not end with {SUFFIX}")
    return path.with_name(path.name[:-len(SUFFIX)])


class Provider:
    name = 'provider'

    def available(self) -> bool:
        raise NotImplementedError

    def encrypt(self, source: pathlib.Path, recipient: str) -> pathlib.Path:
        raise NotImplementedError

    def decrypt(self, encrypted: pathlib.Path) -> pathlib.Path:
        raise NotImplementedError

    def check(self) -> None:
        if not self.available():
            raise ProviderUnavailable(
                f"{self.name.upper()} is not installed or not in PATH")


@attr.s(frozen=True)
class GPG(Provider):
    name = 'gpg'

    verbose: bool = attr.ib(default=False)
    batch: bool = attr.ib(default=False)
    home: typing.Optional[pathlib.Path] = attr.ib(default=None)
    executable: str = attr.ib(default='gpg')

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def command(self, arguments: typing.Sequence[str]) -> typing.Tuple[str, ...]:
        command: typing.Tuple[str, ...] = (self.executable, '--yes')
        if self.batch:
            command = (*command, '--batch')
        if self.verbose:
            command = (*command, '--verbose')
        return (*command, *arguments)

    def environment(self) -> typing.Optional[typing.Dict[str, str]]:
        if self.home is None:
            return None
        return {**os.environ, 'GNUPGHOME': self.home.as_posix()}

    def run(self, arguments: typing.Sequence[str]) -> subprocess.CompletedProcess:
        command = self.command(arguments)
        log.debug(f"Running {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                encoding='utf-8',
                errors='replace',
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self.environment(),
                check=True)
        except subprocess.CalledProcessError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise ProviderError(
                f"{self.executable} exited with status {error.returncode}") from error
        except OSError as error:
            raise ProviderError(f"Could not run {self.executable}: {error}") from error

        if self.verbose:
            for line in result.stderr.splitlines():
                log.info(line)
        return result

    def encrypt(self, source: pathlib.Path, recipient: str) -> pathlib.Path:
        output = encrypted_path(source)
        log.debug(f"Encrypting {source} to {output} for {recipient}")
        self.run([
            '--recipient', recipient,
            '--output', str(output),
            '--encrypt', str(source),
        ])
        return output

    def decrypt(self, encrypted: pathlib.Path) -> pathlib.Path:
        output = decrypted_path(encrypted)
        log.debug(f"Decrypting {encrypted} to {output}")
        self.run([
            '--quiet',
            '--output', str(output),
            '--decrypt', str(encrypted),
        ])
        return output
