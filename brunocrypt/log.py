import logging
import typing

import click

SUCCESS = 25
logging.addLevelName(SUCCESS, 'SUCCESS')

COLOURS: typing.Dict[int, typing.Optional[str]] = {
    logging.DEBUG: None,
    logging.INFO: 'blue',
    SUCCESS: 'green',
    logging.WARNING: 'yellow',
    logging.ERROR: 'red',
    logging.CRITICAL: 'red',
}


def success(logger: logging.Logger, message: str) -> None:
    logger.log(SUCCESS, message)


class ClickHandler(logging.Handler):
    """
    Write log records through click, prefixed with a coloured level name.

    Warnings and errors go to stderr, everything else to stdout.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            level = click.style(
                f"[{record.levelname}]",
                fg=COLOURS.get(record.levelno))
            click.echo(f"{level} {message}", err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def configure(debug: bool = False) -> None:
    handler = ClickHandler()
    handler.setFormatter(logging.Formatter('%(message)s'))

    logger = logging.getLogger('brunocrypt')
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
