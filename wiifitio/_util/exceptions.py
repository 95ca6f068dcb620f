#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

Decode errors are converted into `SaveData` results at the reader entry
points; sync errors end a session. Both carry the numeric `code` that is
sent to clients on the wire.

"""


class WiiFitIOError(Exception):
    """Base exception."""
    _default_message = ''

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)

    @property
    def message(self):
        return str(self)


class LayoutError(WiiFitIOError):
    def __init__(self, name, needed, available):
        message = '%s needs %d bytes but only %d are available' % (
            name, needed, available)
        super().__init__(message)


# Save decoding
# -------------
class DecodeError(WiiFitIOError):
    code = 0


class NotInitialized(DecodeError):
    code = -1
    _default_message = 'Reader not initialized'


class NotFound(DecodeError):
    code = -2
    _default_message = 'Save file not found'

    def __init__(self, paths_tried=0, last_path=None):
        message = 'Save not found. Tried %d paths. Last: %s' % (
            paths_tried, last_path or 'none')
        super().__init__(message)
        self.paths_tried = paths_tried
        self.last_path = last_path


class ReadFailure(DecodeError):
    code = -3
    _default_message = 'Read error'


class ParseFailure(DecodeError):
    code = -4
    _default_message = 'No profiles found in save file'


class OutOfMemory(DecodeError):
    code = -6

    def __init__(self, size):
        super().__init__('Failed to allocate %d bytes' % size)
        self.size = size


ERROR_STRINGS = {
    0: 'Success',
    NotInitialized.code: 'Initialization failed',
    NotFound.code: 'Save file not found',
    ReadFailure.code: 'Read error',
    ParseFailure.code: 'Parse error',
    -5: 'Decryption error',
    OutOfMemory.code: 'Memory allocation failed',
}


def describe(code):
    """Short human-readable description of a decode error code."""
    return ERROR_STRINGS.get(code, 'Unknown error')


# Sync protocol
# -------------
class SyncError(WiiFitIOError):
    code = 0


class NetworkInit(SyncError):
    code = -1
    _default_message = 'Network init failed'


class SocketError(SyncError):
    code = -2
    _default_message = 'Failed to create socket'


class BindError(SyncError):
    code = -3
    _default_message = 'Failed to bind'


class ListenError(SyncError):
    code = -4
    _default_message = 'Failed to listen'


class AcceptError(SyncError):
    code = -5
    _default_message = 'Accept failed'


class SendError(SyncError):
    code = -6
    _default_message = 'Send error'


class ReceiveError(SyncError):
    code = -7
    _default_message = 'Receive error'


class Timeout(SyncError):
    code = -8
    _default_message = 'Timed out'


class Disconnected(SyncError):
    code = -9
    _default_message = 'Client disconnected'
