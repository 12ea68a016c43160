import base64
import logging
import os
import pathlib
import shutil
import subprocess
import typing

import attr
import click.testing
import pytest

import brunocrypt.cli
from brunocrypt.engine import Config, Engine, Mode
from brunocrypt.gpg import Provider, ProviderError, decrypted_path, encrypted_path

RECIPIENT = 'ops@example.com'


@attr.s
class FakeGPG(Provider):
    """Reversible in-memory stand-in for gpg that records every call."""

    name = 'fake'

    installed: bool = attr.ib(default=True)
    failing: typing.Set[pathlib.Path] = attr.ib(factory=set)
    calls: typing.List[typing.Tuple[str, pathlib.Path]] = attr.ib(factory=list)

    def available(self) -> bool:
        return self.installed

    def encrypt(self, source: pathlib.Path, recipient: str) -> pathlib.Path:
        self.calls.append(('encrypt', source))
        if source in self.failing:
            raise ProviderError(f"Could not encrypt {source}")
        output = encrypted_path(source)
        output.write_bytes(
            b'fake:' + recipient.encode() + b'\n' + base64.b64encode(source.read_bytes()))
        return output

    def decrypt(self, encrypted: pathlib.Path) -> pathlib.Path:
        self.calls.append(('decrypt', encrypted))
        if encrypted in self.failing:
            raise ProviderError(f"Could not decrypt {encrypted}")
        data = encrypted.read_bytes()
        if not data.startswith(b'fake:'):
            raise ProviderError(f"{encrypted} is not encrypted")
        output = decrypted_path(encrypted)
        output.write_bytes(base64.b64decode(data.split(b'\n', 1)[1]))
        return output


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger('brunocrypt')
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture()
def fake_gpg() -> FakeGPG:
    return FakeGPG()


@pytest.fixture()
def tree(tmp_path):
    """Create files below a temporary directory from a {path: contents} dict."""
    def tree_func(files: typing.Dict[str, str]) -> pathlib.Path:
        for name, contents in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents)
        return tmp_path

    return tree_func


class _Input:
    """A stdin replacement that records whether it was read."""

    def __init__(self, text: str):
        self.text = text
        self.read = False

    def readline(self) -> str:
        self.read = True
        return self.text


@pytest.fixture()
def engine(tmp_path, fake_gpg):
    def engine_func(mode: Mode, force: bool = False, answer: str = '', **kwargs) -> Engine:
        if mode is Mode.ENCRYPT:
            kwargs.setdefault('recipient', RECIPIENT)
        config = Config(mode=mode, directory=tmp_path, force=force, **kwargs)
        return Engine(config, provider=fake_gpg, stdin=_Input(answer))

    return engine_func


@attr.s(frozen=True)
class Invocation:
    exit_code: int = attr.ib()
    output: str = attr.ib()

    @property
    def lines(self) -> typing.List[str]:
        return self.output.splitlines()


@pytest.fixture()
def invoke(monkeypatch, fake_gpg):
    monkeypatch.setattr(brunocrypt.cli, 'GPG', lambda verbose=False: fake_gpg)
    monkeypatch.delenv('BRUNOCRYPT_RECIPIENT', raising=False)

    def invoke_func(arguments: typing.Sequence[str], input: typing.Optional[str] = None):
        assert all(isinstance(arg, str) for arg in arguments)
        runner = click.testing.CliRunner()
        result = runner.invoke(brunocrypt.cli.main, list(arguments), input=input)
        if result.exception and not isinstance(result.exception, SystemExit):
            raise result.exception
        return Invocation(result.exit_code, result.output)

    return invoke_func


@pytest.fixture(scope='session')
def gnupg_home(tmp_path_factory) -> pathlib.Path:
    """A throwaway GnuPG home with an unprotected key for RECIPIENT."""
    if shutil.which('gpg') is None:
        pytest.skip("gpg is not installed")

    home = tmp_path_factory.mktemp('gnupg')
    home.chmod(0o700)
    try:
        subprocess.run(
            ('gpg', '--batch', '--passphrase', '',
             '--quick-generate-key', RECIPIENT, 'default', 'default', 'never'),
            env={**os.environ, 'GNUPGHOME': home.as_posix()},
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True)
    except subprocess.CalledProcessError as error:
        pytest.skip(f"Could not generate a test key: {error.stderr!r}")
    return home
