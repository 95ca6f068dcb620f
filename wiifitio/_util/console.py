#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Coloured console output for the command line tool.

"""
import logging
import sys


TEXT_DECORATIONS = {
    'header': '\033[95m',
    'blue': '\033[94m',
    'green': '\033[92m',
    'warning': '\033[93m',
    'fail': '\033[91m',
    'bold': '\033[1m',
    'underline': '\033[4m',
    'end': '\033[0m',
}

LEVEL_DECORATIONS = {
    logging.DEBUG: ('blue',),
    logging.INFO: (),
    logging.WARNING: ('warning',),
    logging.ERROR: ('fail',),
    logging.CRITICAL: ('fail', 'bold'),
}


def decorate(text, *decorations):
    """Wrap `text` in ANSI escape codes.

    Parameters
    ----------
    text : str
    *decorations : str
        Keys of `TEXT_DECORATIONS`. With none, `text` comes back as is.
    """
    if not decorations:
        return text
    decors = ''.join(TEXT_DECORATIONS[d] for d in decorations)
    return decors + text + TEXT_DECORATIONS['end']


def printd(text, *decorations, **kwargs):
    """Print decorated."""
    print(decorate(text, *decorations), **kwargs)


class indented_stdout:
    """Context manager for indenting anything sent to stdout.

        >>> with indented_stdout(2):
        ...    print('this is indented')
        ...
          this is indented
    """
    def __init__(self, indent=4):
        self.indent = ' ' * indent
        self.should_indent = True

    def write(self, text):
        if self.should_indent and text:
            text = self.indent + text
        self._stdout.write(text)
        self.should_indent = text.endswith('\n')

    def flush(self):
        self._stdout.flush()

    def __enter__(self):
        self._stdout = sys.stdout
        sys.stdout = self
        return self

    def __exit__(self, type, value, traceback):
        sys.stdout = self._stdout


class ColourFormatter(logging.Formatter):
    """Log formatter that colours each record by its level."""
    def __init__(self, fmt='%(asctime)s %(levelname)-7s %(message)s',
                 datefmt='%H:%M:%S', colour=True):
        super().__init__(fmt, datefmt)
        self.colour = colour

    def format(self, record):
        text = super().format(record)
        if not self.colour:
            return text
        return decorate(text, *LEVEL_DECORATIONS.get(record.levelno, ()))


def setup_logging(level=logging.INFO, stream=None):
    """Send package logs to `stream` (stderr by default), coloured if a tty."""
    stream = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ColourFormatter(colour=getattr(stream, 'isatty', lambda: False)()))

    package_logger = logging.getLogger('wiifitio')
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler
