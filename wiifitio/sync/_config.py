#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Settings for the sync server and its sessions.

Defaults match what the console-side homebrew shipped with; the client
app expects port 8888.

"""
from dataclasses import dataclass, replace

from wiifitio.sync._encoder import MAX_MESSAGE_SIZE


@dataclass(frozen=True)
class SyncConfig:
    """Sync settings.

    Attributes:
        host: Interface to listen on ('' for all)
        port: TCP port to listen on
        request_timeout_s: How long a new connection has to send its request
        ack_timeout_s: How long to wait for the client's acknowledgement
        poll_interval_s: Sleep between non-blocking polls
        max_request_size: Receive buffer size for requests
        max_message_size: Capacity of the response payload
        chunk_size: Bytes per send call
        chunk_delay_s: Pause after each chunk
        retry_delay_s: Pause when the socket buffer is full
        send_timeout_s: Give up on a response that makes no progress
    """
    # Network
    host: str = ''
    port: int = 8888

    # Session timing
    request_timeout_s: float = 5.0
    ack_timeout_s: float = 2.0
    poll_interval_s: float = 0.01

    # Sizes
    max_request_size: int = 1024
    max_message_size: int = MAX_MESSAGE_SIZE

    # Sending, in paced chunks
    chunk_size: int = 512
    chunk_delay_s: float = 0.001
    retry_delay_s: float = 0.005
    send_timeout_s: float = 10.0

    def replace(self, **changes):
        """Copy with some settings changed; None values are ignored."""
        return replace(self, **{key: value for key, value in changes.items()
                                if value is not None})


DEFAULT_CONFIG = SyncConfig()
