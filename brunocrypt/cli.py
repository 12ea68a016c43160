import logging
import pathlib
import typing

import click

from . import __doc__, __version__
from .engine import Config, Engine, Mode
from .gpg import GPG
from .log import configure

log = logging.getLogger(__name__)

EPILOG = """
\b
Examples:
    brunocrypt --encrypt ~/path/to/repository/ --recipient your@email.com
    brunocrypt --decrypt ~/path/to/repository/
    brunocrypt --clean -f ~/path/to/repository/
"""


class Command(click.Command):
    """Report usage errors with exit code 1 instead of click's default of 2."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as error:
            error.exit_code = 1
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError as error:
            error.exit_code = 1
            raise


class PathType(click.Path):
    def convert(self, value, param, ctx):
        return pathlib.Path(super().convert(value, param, ctx))


def select_mode(encrypt: bool, decrypt: bool, clean: bool) -> Mode:
    selected = [mode for mode, flag in (
        (Mode.ENCRYPT, encrypt),
        (Mode.DECRYPT, decrypt),
        (Mode.CLEAN, clean),
    ) if flag]

    ctx = click.get_current_context(silent=True)
    if not selected:
        raise click.UsageError("No mode specified", ctx=ctx)
    if len(selected) > 1:
        raise click.UsageError("Multiple modes specified", ctx=ctx)
    return selected[0]


def build_config(
        mode: Mode,
        directory: pathlib.Path,
        force: bool,
        recipient: typing.Optional[str]) -> Config:
    if mode is Mode.ENCRYPT and not recipient:
        raise click.UsageError(
            "Recipient email is required for encryption",
            ctx=click.get_current_context(silent=True))

    if mode is not Mode.ENCRYPT and recipient:
        log.warning(f"--recipient is only used when encrypting, ignoring it for {mode.value}")
        recipient = None

    if force and mode is not Mode.CLEAN:
        log.debug(f"-f has no effect when running {mode.value}")

    return Config(
        mode=mode,
        directory=directory.resolve(),
        force=force,
        recipient=recipient)


@click.command(
    cls=Command,
    help=__doc__,
    epilog=EPILOG,
    context_settings={'help_option_names': ['-h', '--help']})
@click.option(
    '-e', '--encrypt', 'encrypt',
    is_flag=True,
    help="Encrypt all .env files in the directory tree.")
@click.option(
    '-d', '--decrypt', 'decrypt',
    is_flag=True,
    help="Decrypt all .env.gpg files in the directory tree.")
@click.option(
    '-c', '--clean', 'clean',
    is_flag=True,
    help="Remove all .env files in the directory tree.")
@click.option(
    '-f', '--force', 'force',
    is_flag=True,
    help="Delete without asking for confirmation (only for --clean).")
@click.option(
    '--recipient',
    metavar='ID',
    envvar='BRUNOCRYPT_RECIPIENT',
    type=click.STRING,
    help="GPG recipient to encrypt for (required for --encrypt).")
@click.option(
    '--debug', 'debug',
    is_flag=True,
    help="Enable debug logging.")
@click.option(
    '-v', '--verbose', 'gpg_verbose',
    is_flag=True,
    help="Display GPG's normal STDERR output.")
@click.version_option(__version__, prog_name='brunocrypt')
@click.argument(
    'directory',
    type=PathType(file_okay=False, dir_okay=True, exists=True),
    required=True)
def main(
        encrypt: bool,
        decrypt: bool,
        clean: bool,
        force: bool,
        recipient: typing.Optional[str],
        debug: bool,
        gpg_verbose: bool,
        directory: pathlib.Path):
    configure(debug=debug)
    mode = select_mode(encrypt, decrypt, clean)
    config = build_config(mode, directory, force, recipient)

    result = Engine(config, provider=GPG(verbose=gpg_verbose)).run()

    if result.failed:
        log.warning(f"{result.failed} of {result.attempted} file(s) failed")
