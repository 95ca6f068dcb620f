#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Non-blocking TCP sockets behind the connection interface sessions use.

Socket failures are turned into `SyncError` subclasses here so nothing
above this module deals with `OSError`.

"""
import logging
import socket

from wiifitio._util.exceptions import (
    AcceptError, BindError, Disconnected, ListenError, ReceiveError,
    SendError, SocketError)


logger = logging.getLogger(__name__)

BACKLOG = 1


class TCPConnection:
    """An accepted, non-blocking client socket."""
    def __init__(self, sock, address=None):
        sock.setblocking(False)
        self._sock = sock
        self.address = address
        self._closed = False

    @property
    def peer(self):
        if self.address is None:
            return 'client'
        return '%s:%d' % self.address[:2]

    @property
    def closed(self):
        return self._closed

    def receive(self, max_len):
        """Whatever is pending, up to `max_len` bytes; None if nothing is."""
        try:
            data = self._sock.recv(max_len)
        except BlockingIOError:
            return None
        except OSError as e:
            raise ReceiveError('Receive error (%s)' % e) from e

        if not data:
            raise Disconnected()
        return data

    def send(self, data):
        """Bytes accepted by the socket; 0 when its buffer is full."""
        try:
            return self._sock.send(data)
        except BlockingIOError:
            return 0
        except OSError as e:
            raise SendError('Send error (%s)' % e) from e

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug('Shutdown of %s: %s', self.peer, e)
        self._sock.close()


class TCPListener:
    """Listening socket; outlives the sessions it accepts.

        >>> with TCPListener('', 8888) as listener:
        ...     connection = listener.accept()    # None if nobody's there
    """
    def __init__(self, host='', port=8888):
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise SocketError('Failed to create socket (%s)' % e) from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                sock.bind((host, port))
            except OSError as e:
                raise BindError('Failed to bind port %d (%s)' % (port, e)) \
                    from e
            try:
                sock.listen(BACKLOG)
            except OSError as e:
                raise ListenError('Failed to listen (%s)' % e) from e
            sock.setblocking(False)
        except Exception:
            sock.close()
            raise

        self._sock = sock
        logger.info('Listening on %s:%d', host or '*', self.port)

    @property
    def port(self):
        """The bound port (useful after binding port 0)."""
        return self._sock.getsockname()[1]

    def accept(self):
        """A `TCPConnection` if a client is waiting, else None."""
        try:
            sock, address = self._sock.accept()
        except BlockingIOError:
            return None
        except OSError as e:
            raise AcceptError('Accept failed (%s)' % e) from e

        connection = TCPConnection(sock, address)
        logger.info('Client connected: %s', connection.peer)
        return connection

    def close(self):
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()
