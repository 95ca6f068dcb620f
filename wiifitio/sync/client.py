#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The other end of the sync protocol: ask a server for its save data.

    >>> save_data = fetch('192.168.1.20')
    >>> save_data.profiles[0].name
    'Alice'

"""
from datetime import datetime
import json
import logging
import socket
import time

from wiifitio.sync._encoder import DATETIME_FMT
from wiifitio._types.records import Measurement, Profile, SaveData
from wiifitio._util.exceptions import WiiFitIOError


logger = logging.getLogger(__name__)

SYNC_REQUEST = b'{"action":"sync"}'
ACK = b'{"action":"ack"}'
RECV_SIZE = 4096


class ServerError(WiiFitIOError):
    """The server answered with an error payload."""
    def __init__(self, code, message):
        super().__init__('%s (code %d)' % (message, code))
        self.code = code
        self.server_message = message


def _is_complete(buffer):
    stripped = bytes(buffer).strip()
    if not (stripped.startswith(b'{') and stripped.endswith(b'}')):
        return False
    # A chunk can end on the brace of an inner object.
    try:
        json.loads(stripped.decode('utf-8'))
    except ValueError:
        return False
    return True


def _parse_dob(text):
    year, month, day = (int(part) for part in text.split('-'))
    return year, month, day


def _parse_measurement(obj):
    return Measurement(
        timestamp=datetime.strptime(obj['date'], DATETIME_FMT),
        weight_kg=float(obj['weight_kg']),
        bmi=float(obj['bmi']),
        balance_percent=float(obj['balance_percent']),
        has_extended_data=False,    # not on the wire
    )


def _parse_profile(obj):
    year, month, day = _parse_dob(obj.get('dob', '0000-00-00'))
    return Profile(
        name=obj['name'],
        height_cm=int(obj['height_cm']),
        birth_year=year, birth_month=month, birth_day=day,
        measurements=[_parse_measurement(m)
                      for m in obj.get('measurements', [])],
        activities=obj.get('activities', []),
    )


def loads_response(payload):
    """Turn a server payload into `SaveData`.

    Parameters
    ----------
    payload : bytes or str

    Raises
    ------
    ServerError
        If the payload is an error object.
    ValueError
        If it isn't valid JSON, or has neither profiles nor an error.
    """
    if isinstance(payload, bytes):
        payload = payload.decode('utf-8')
    obj = json.loads(payload)

    if 'error' in obj:
        error = obj['error']
        raise ServerError(int(error.get('code', 0)),
                          error.get('message', ''))

    if 'profiles' not in obj:
        raise ValueError('payload has neither "profiles" nor "error"')

    profiles = [_parse_profile(p) for p in obj['profiles']]
    if not profiles:
        raise ValueError('payload has no profiles')
    return SaveData.success(profiles)


def _receive_payload(sock, deadline):
    buffer = bytearray()
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning('Timed out with %d bytes received', len(buffer))
            break
        sock.settimeout(remaining)
        try:
            chunk = sock.recv(RECV_SIZE)
        except socket.timeout:
            continue
        if not chunk:
            break
        buffer += chunk
        if _is_complete(buffer):
            break
    return bytes(buffer)


def fetch(host, port=8888, timeout=30):
    """Request, receive and acknowledge one sync.

    Parameters
    ----------
    host : str
    port : int, optional
    timeout : float, optional
        Seconds allowed for connecting and for the whole response.

    Returns
    -------
    SaveData

    Raises
    ------
    ServerError
        The server sent an error payload.
    OSError
        Connection problems.
    ValueError
        The response was incomplete or malformed.
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall(SYNC_REQUEST)
        logger.info('Sync requested from %s:%d', host, port)

        payload = _receive_payload(sock, time.monotonic() + timeout)
        logger.info('Received %d bytes', len(payload))

        try:
            sock.sendall(ACK)
        except OSError as e:
            logger.warning('Could not acknowledge: %s', e)

    return loads_response(payload)
