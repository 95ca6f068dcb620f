#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Accept loop: one client at a time, one session per client.

"""
import logging
import time

from wiifitio.sync._config import DEFAULT_CONFIG
from wiifitio.sync._session import SyncSession
from wiifitio.sync._transport import TCPListener
from wiifitio._util.exceptions import AcceptError


logger = logging.getLogger(__name__)


class SyncServer:
    """Serves one decoded save to whoever connects.

    Parameters
    ----------
    save_data : SaveData
        Decoded before the server starts; it is never re-read.
    config : SyncConfig, optional

    Attributes
    ----------
    sessions_served : int
        Sessions that got as far as sending a response.
    last_session : SyncSession or None
    """
    def __init__(self, save_data, config=DEFAULT_CONFIG, *,
                 clock=time.monotonic, sleep=time.sleep):
        self.save_data = save_data
        self.config = config
        self.listener = None
        self.sessions_served = 0
        self.last_session = None
        self._clock = clock
        self._sleep = sleep

    @property
    def port(self):
        return None if self.listener is None else self.listener.port

    def start(self):
        """Create the listening socket. Raises a `SyncError` on failure."""
        if self.listener is None:
            self.listener = TCPListener(self.config.host, self.config.port)
        return self

    def refresh(self, save_data):
        """Serve `save_data` to the next client onwards."""
        self.save_data = save_data

    def poll(self, should_cancel=None):
        """Accept at most one client and run its session to the end.

        Accept failures are logged and the listener stays up.

        Returns
        -------
        SyncSession or None
            None if nobody was waiting or accepting failed.
        """
        try:
            connection = self.start().listener.accept()
        except AcceptError as e:
            logger.error('Accept failed, still listening: %s', e)
            return None
        if connection is None:
            return None

        session = SyncSession(connection, self.save_data, self.config,
                              clock=self._clock, sleep=self._sleep)
        try:
            session.run(should_cancel)
        finally:
            session.close()
        if session.served:
            self.sessions_served += 1
        self.last_session = session
        return session

    def serve_forever(self, should_stop=None):
        """Poll until `should_stop()` is true (or forever without it)."""
        self.start()
        logger.info('Waiting for connections on port %d', self.port)
        try:
            while should_stop is None or not should_stop():
                if self.poll(should_stop) is None:
                    self._sleep(self.config.poll_interval_s)
        finally:
            self.close()

    def close(self):
        if self.listener is not None:
            self.listener.close()
            self.listener = None
            logger.info('Server stopped after %d session(s)',
                        self.sessions_served)

    def __enter__(self):
        return self.start()

    def __exit__(self, type, value, traceback):
        self.close()
