#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Get save bytes from storage and turn them into a `SaveData` result.

Decode errors stop here: everything below raises, everything exported
from this module returns a `SaveData` carrying either profiles or an
error code and message.

"""
import logging
import os

from wiifitio.save._protocol import read_profiles, NULL_OBSERVER
from wiifitio._types.records import SaveData
from wiifitio._util.exceptions import (
    DecodeError, NotFound, NotInitialized, OutOfMemory, ReadFailure)


logger = logging.getLogger(__name__)

MAX_SAVE_SIZE = 16 * 1024 * 1024

# Wii Fit Plus writes FitPlus0.dat, the original Wii Fit RPHealth.dat (some
# Plus builds do too). Title IDs: RFP[EPJ] for Plus, RFN[EPJ] for the
# original; 00010004 is the channel install of Plus.
SAVE_PATHS = (
    '/title/00010000/5246504a/data/FitPlus0.dat',   # RFPJ
    '/title/00010000/52465045/data/FitPlus0.dat',   # RFPE
    '/title/00010000/52465050/data/FitPlus0.dat',   # RFPP
    '/title/00010000/5246504A/data/FitPlus0.dat',   # RFPJ, upper case hex
    '/title/00010000/5246504a/data/RPHealth.dat',
    '/title/00010000/52465045/data/RPHealth.dat',
    '/title/00010000/52465050/data/RPHealth.dat',
    '/title/00010004/5246504a/data/FitPlus0.dat',
    '/title/00010004/52465045/data/FitPlus0.dat',
    '/title/00010000/52464e4a/data/RPHealth.dat',   # RFNJ
    '/title/00010000/52464e45/data/RPHealth.dat',   # RFNE
    '/title/00010000/52464e50/data/RPHealth.dat',   # RFNP
)


class LocalStorage:
    """Storage provider over the local filesystem.

    With a `root`, console paths ('/title/...') are looked up beneath it,
    which suits an extracted NAND dump. Without one, paths are used as is.

    Any method may raise `OSError`.
    """
    def __init__(self, root=None):
        self.root = root

    def _resolve(self, path):
        if self.root is None:
            return path
        return os.path.join(self.root, path.lstrip('/'))

    def open(self, path):
        return open(self._resolve(path), 'rb')

    def stat(self, handle):
        return os.fstat(handle.fileno()).st_size

    def read_fully(self, handle, size):
        buffer = bytearray(size)    # may raise MemoryError
        n_read = handle.readinto(buffer)
        if n_read is None:
            n_read = 0
        return bytes(buffer[:n_read])

    def close(self, handle):
        handle.close()


class SaveReader:
    """Owns storage access for one decode.

    Use as a context manager; `read` outside of the ``with`` block gives a
    "not initialized" result. The raw buffer never outlives `read`.

        >>> with SaveReader(LocalStorage('nand')) as reader:
        ...     save_data = reader.read()

    Attributes
    ----------
    last_tried_path : str or None
        The most recent path `read` attempted; handy when nothing is found.
    """
    def __init__(self, storage, paths=SAVE_PATHS, *, observer=NULL_OBSERVER):
        self.storage = storage
        self.paths = tuple(paths)
        self.observer = observer
        self.last_tried_path = None
        self._is_open = False

    def __enter__(self):
        self._is_open = True
        return self

    def __exit__(self, type, value, traceback):
        self._is_open = False

    def read(self):
        """Find, read and decode the save.

        Returns
        -------
        SaveData
        """
        try:
            data = self._read_bytes()
            profiles = read_profiles(data, observer=self.observer)
        except DecodeError as e:
            logger.warning('Could not load save data: %s', e)
            return SaveData.from_error(e)

        logger.info('Save data loaded: %d profile(s)', len(profiles))
        return SaveData.success(profiles)

    def _open_first(self):
        for path in self.paths:
            self.last_tried_path = path
            try:
                return self.storage.open(path)
            except OSError as e:
                logger.debug('Cannot open %s: %s', path, e)
        raise NotFound(len(self.paths), self.last_tried_path)

    def _read_bytes(self):
        if not self._is_open:
            raise NotInitialized()

        handle = self._open_first()
        try:
            try:
                size = self.storage.stat(handle)
            except OSError as e:
                raise ReadFailure('Failed to get file stats (%s)' % e) from e

            if size < 0 or size > MAX_SAVE_SIZE:
                raise OutOfMemory(size)

            try:
                data = self.storage.read_fully(handle, size)
            except MemoryError as e:
                raise OutOfMemory(size) from e
            except OSError as e:
                raise ReadFailure('Failed to read save file (%s)' % e) from e
        finally:
            self.storage.close(handle)

        if len(data) != size:
            raise ReadFailure('Failed to read save file (%d of %d bytes)' %
                              (len(data), size))
        return data


def scan_paths(storage, paths=SAVE_PATHS):
    """Which of `paths` can be opened? Yields (path, found) pairs."""
    for path in paths:
        try:
            handle = storage.open(path)
        except OSError:
            yield path, False
        else:
            storage.close(handle)
            yield path, True


def decode(buffer, *, observer=NULL_OBSERVER):
    """Decode a save that is already in memory.

    Returns
    -------
    SaveData
        A parse error result if no profile was found.
    """
    try:
        return SaveData.success(read_profiles(buffer, observer=observer))
    except DecodeError as e:
        return SaveData.from_error(e)


def read(file_path, *, observer=NULL_OBSERVER):
    """Read and decode a save file copied off the console.

    Parameters
    ----------
    file_path : str
        Path to FitPlus0.dat or RPHealth.dat.

    Returns
    -------
    SaveData
    """
    with SaveReader(LocalStorage(), (file_path,), observer=observer) as reader:
        return reader.read()


def read_nand(root, *, observer=NULL_OBSERVER):
    """Search an extracted NAND tree at `root` for a Wii Fit save."""
    with SaveReader(LocalStorage(root), observer=observer) as reader:
        return reader.read()
