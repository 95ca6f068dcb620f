#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
One sync exchange with one client.

A session starts when a connection is accepted and always ends with that
connection closed:

    AWAITING_REQUEST --> SERVING --> AWAITING_ACK --> CLOSED

with shortcuts to CLOSED from AWAITING_REQUEST (disconnect, timeout,
unknown request) and from SERVING (send failure).

Requests are recognised by substring, not parsed: anything containing
``"action"`` and ``"sync"`` is a sync request, and anything containing
``"ack"`` afterwards is an acknowledgement. Whether the acknowledgement
arrives only changes what gets logged.

The connection is polled, never blocked on. `SyncSession.step` does one
poll and returns; `SyncSession.run` loops over it until CLOSED, checking
an optional cancellation callable in between.

"""
from enum import Enum
import logging
import time

from wiifitio.sync._config import DEFAULT_CONFIG
from wiifitio.sync._encoder import encode
from wiifitio._util.exceptions import (
    Disconnected, ReceiveError, SyncError, Timeout)


logger = logging.getLogger(__name__)

ACTION_MARKER = b'"action"'
SYNC_MARKER = b'"sync"'
ACK_MARKER = b'"ack"'


class Phase(Enum):
    AWAITING_REQUEST = 'awaiting request'
    SERVING = 'serving'
    AWAITING_ACK = 'awaiting acknowledgement'
    CLOSED = 'closed'


def is_sync_request(data):
    return ACTION_MARKER in data and SYNC_MARKER in data


def is_ack(data):
    return ACK_MARKER in data


def looks_complete(data):
    """Does `data` look like a whole JSON object?"""
    stripped = bytes(data).strip()
    return stripped.startswith(b'{') and stripped.endswith(b'}')


class SyncSession:
    """State of one accepted connection.

    Parameters
    ----------
    connection : object
        Has ``receive(max_len)`` (bytes, or None when nothing is pending;
        raises `Disconnected` or `ReceiveError`), ``send(data)`` (count
        sent, 0 if the transport is full; raises `SendError`) and
        ``close()``.
    save_data : SaveData
        What to serve. Error results are served as error payloads.
    config : SyncConfig, optional
    clock, sleep : callable, optional
        Time source (seconds) and sleep function.

    Attributes
    ----------
    phase : Phase
    buffer : bytearray
        What has been received in the current phase.
    deadline : float
        `clock` value at which the current phase times out.
    request : bytes or None
        The recognised sync request.
    bytes_sent : int
    served : bool
        Whether the whole response went out.
    acknowledged : bool
    error : SyncError or None
        Why the session ended early, if it did.
    """
    def __init__(self, connection, save_data, config=DEFAULT_CONFIG, *,
                 clock=time.monotonic, sleep=time.sleep):
        self.connection = connection
        self.save_data = save_data
        self.config = config
        self._clock = clock
        self._sleep = sleep

        self.phase = Phase.AWAITING_REQUEST
        self.buffer = bytearray()
        self.deadline = clock() + config.request_timeout_s
        self.request = None
        self.bytes_sent = 0
        self.served = False
        self.acknowledged = False
        self.error = None

    @property
    def peer(self):
        return getattr(self.connection, 'peer', 'client')

    @property
    def closed(self):
        return self.phase is Phase.CLOSED

    def step(self):
        """Advance by at most one poll. Returns the new phase."""
        if self.phase is Phase.AWAITING_REQUEST:
            self._await_request()
        elif self.phase is Phase.SERVING:
            self._serve()
        elif self.phase is Phase.AWAITING_ACK:
            self._await_ack()
        return self.phase

    def run(self, should_cancel=None):
        """Step until CLOSED, sleeping between polls that change nothing.

        Parameters
        ----------
        should_cancel : callable, optional
            Checked before every poll; a true result closes the session.
        """
        try:
            while not self.closed:
                if should_cancel is not None and should_cancel():
                    logger.info('[%s] Session cancelled', self.peer)
                    break

                before = self.phase
                if self.step() is before:
                    self._sleep(self.config.poll_interval_s)
        finally:
            self.close()
        return self

    def close(self):
        if not self.closed:
            self._close()

    # Phases
    # ------
    def _receive(self):
        """Poll once. Closes the session on a dead connection."""
        room = max(self.config.max_request_size - len(self.buffer), 1)
        try:
            return self.connection.receive(room)
        except Disconnected as e:
            logger.info('[%s] Client disconnected', self.peer)
            if self.phase is Phase.AWAITING_REQUEST:
                self._fail(e)
            else:
                self._close()
        except ReceiveError as e:
            logger.error('[%s] Receive error: %s', self.peer, e)
            self._fail(e)
        return None

    def _await_request(self):
        data = self._receive()
        if self.closed:
            return

        if data:
            self.buffer += data
            if is_sync_request(self.buffer):
                logger.info('[%s] Sync request received', self.peer)
                self.request = bytes(self.buffer)
                self.phase = Phase.SERVING
                return

            full = len(self.buffer) >= self.config.max_request_size
            if full or looks_complete(self.buffer):
                self._unknown_request()
                return

        if self._clock() >= self.deadline:
            if self.buffer:
                self._unknown_request()
            else:
                logger.warning('[%s] Timeout waiting for request', self.peer)
                self._fail(Timeout('Timeout waiting for request'))

    def _unknown_request(self):
        text = bytes(self.buffer).decode('utf-8', 'replace')
        logger.warning('[%s] Unknown request: %.50s...', self.peer, text)
        self._close()

    def _serve(self):
        payload = encode(self.save_data, self.config.max_message_size)
        logger.info('[%s] JSON: %d bytes', self.peer, len(payload))

        try:
            self._send_all(payload)
        except SyncError as e:
            logger.error('[%s] Send failed after %d bytes: %s',
                         self.peer, self.bytes_sent, e)
            self._fail(e)
            return

        self.served = True
        logger.info('[%s] Sent %d bytes', self.peer, self.bytes_sent)
        self.buffer = bytearray()
        self.deadline = self._clock() + self.config.ack_timeout_s
        self.phase = Phase.AWAITING_ACK

    def _send_all(self, payload):
        view = memoryview(payload)
        chunk_size = self.config.chunk_size
        stall_deadline = self._clock() + self.config.send_timeout_s

        while self.bytes_sent < len(payload):
            chunk = view[self.bytes_sent:self.bytes_sent + chunk_size]
            n_sent = self.connection.send(chunk)

            if not n_sent:    # transport is full; try again shortly
                if self._clock() >= stall_deadline:
                    raise Timeout('Send stalled at %d of %d bytes' %
                                  (self.bytes_sent, len(payload)))
                self._sleep(self.config.retry_delay_s)
                continue

            self.bytes_sent += n_sent
            stall_deadline = self._clock() + self.config.send_timeout_s
            self._sleep(self.config.chunk_delay_s)

    def _await_ack(self):
        data = self._receive()
        if self.closed:
            return

        if data:
            self.buffer += data
            if is_ack(self.buffer):
                self.acknowledged = True
                logger.info('[%s] Sync completed successfully!', self.peer)
                self._close()
                return
            if looks_complete(self.buffer):
                logger.info('[%s] Reply was not an acknowledgement',
                            self.peer)
                self._close()
                return

        if self._clock() >= self.deadline:
            logger.info('[%s] No acknowledgement received', self.peer)
            self._close()

    # Teardown
    # --------
    def _fail(self, error):
        self.error = error
        self._close()

    def _close(self):
        self.connection.close()
        self.phase = Phase.CLOSED
