#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Render decode results as the JSON payload sent to sync clients.

Payloads are built with `JsonBuilder`, which works against a fixed byte
capacity. When the next piece does not fit, it stops adding content and
closes whatever objects and arrays are still open, so a truncated payload
is still well-formed JSON.

Success::

    {"version":2,"profiles":[{"name":"...","height_cm":170,
     "dob":"1990-05-10","measurements":[{"date":"2023-05-10T23:15:00",
     "weight_kg":65.3,"bmi":22.10,"balance_percent":51.0}],
     "activities":[]}]}

Error::

    {"version":2,"error":{"code":-2,"message":"Save file not found"}}

"""
from math import isfinite


VERSION = 2
MAX_MESSAGE_SIZE = 65536

DATETIME_FMT = '%Y-%m-%dT%H:%M:%S'

# What non-finite or negative values are sent as.
DEFAULT_WEIGHT = 0.0
DEFAULT_BMI = 0.0
DEFAULT_BALANCE = 50.0    # centred

ESCAPES = {
    '\\': '\\\\',
    '"': '\\"',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}

CLOSERS = {'{': b'}', '[': b']'}


def escape(text):
    """Escape backslash, double quote, newline, CR and tab. Nothing else."""
    return ''.join(ESCAPES.get(c, c) for c in text)


def sanitize(value, default):
    if value is None or not isfinite(value) or value < 0:
        return default
    return value


class JsonBuilder:
    """Bounded JSON writer.

    Every method either appends a whole piece or, if that piece plus the
    brackets needed to close everything would exceed `capacity`, marks the
    builder truncated. After that every call is a no-op and `getvalue`
    returns the text so far with all open brackets closed.

    Attributes
    ----------
    capacity : int
        Maximum size of the finished payload in bytes.
    truncated : bool
        Whether anything was dropped.
    """
    def __init__(self, capacity):
        self.capacity = capacity
        self.truncated = False
        self._buffer = bytearray()
        self._stack = []    # [closer, n_members] per open container

    @property
    def depth(self):
        return len(self._stack)

    def _pending_closers(self):
        return b''.join(closer for closer, _ in reversed(self._stack))

    def _append(self, piece, opens=b''):
        if self.truncated:
            return False

        needed = (len(self._buffer) + len(piece) + len(opens)
                  + len(self._stack))
        if needed > self.capacity:
            self.truncated = True
            return False

        self._buffer += piece
        return True

    def _member_prefix(self, key):
        if not self._stack:
            prefix = ''
        elif self._stack[-1][1]:
            prefix = ','
        else:
            prefix = ''
        if key is not None:
            prefix += '"%s":' % escape(key)
        return prefix.encode('utf-8')

    def _count_member(self):
        if self._stack:
            self._stack[-1][1] += 1

    def begin(self, bracket, key=None):
        """Open an object ('{') or array ('['), optionally as a member."""
        closer = CLOSERS[bracket]
        piece = self._member_prefix(key) + bracket.encode('ascii')
        if self._append(piece, opens=closer):
            self._count_member()
            self._stack.append([closer, 0])
            return True
        return False

    def end(self):
        if self.truncated:
            return False
        closer, _ = self._stack.pop()
        self._buffer += closer    # room was reserved when it was opened
        return True

    def raw(self, literal, key=None):
        """Add an already-encoded JSON value (str) as the next member."""
        piece = self._member_prefix(key) + literal.encode('utf-8')
        if self._append(piece):
            self._count_member()
            return True
        return False

    def string(self, text, key=None):
        return self.raw('"%s"' % escape(text), key)

    def integer(self, value, key=None):
        return self.raw('%d' % value, key)

    def getvalue(self):
        """The payload, with any still-open brackets closed."""
        return bytes(self._buffer) + self._pending_closers()


def _measurement_json(measurement):
    weight = sanitize(measurement.weight_kg, DEFAULT_WEIGHT)
    bmi = sanitize(measurement.bmi, DEFAULT_BMI)
    balance = sanitize(measurement.balance_percent, DEFAULT_BALANCE)
    return ('{"date":"%s","weight_kg":%.1f,"bmi":%.2f,'
            '"balance_percent":%.1f}' % (
                measurement.timestamp.strftime(DATETIME_FMT),
                weight, bmi, balance))


def _write_profile(builder, profile):
    if not builder.begin('{'):
        return
    builder.string(profile.name, 'name')
    builder.integer(profile.height_cm, 'height_cm')
    builder.string(profile.dob, 'dob')

    # Measurements are added whole; a half-written one is worse than none.
    if builder.begin('[', 'measurements'):
        for measurement in profile.measurements:
            if not builder.raw(_measurement_json(measurement)):
                break
        builder.end()

    # Activity records aren't decoded yet, so this is always empty.
    if builder.begin('[', 'activities'):
        builder.end()

    builder.end()


def write_response(builder, save_data):
    if not builder.begin('{'):
        return builder
    builder.integer(VERSION, 'version')
    if builder.begin('[', 'profiles'):
        for profile in save_data.profiles:
            _write_profile(builder, profile)
        builder.end()
    builder.end()
    return builder


def write_error(builder, error_code, error_message):
    if not builder.begin('{'):
        return builder
    builder.integer(VERSION, 'version')
    if builder.begin('{', 'error'):
        builder.integer(error_code, 'code')
        builder.string(error_message, 'message')
        builder.end()
    builder.end()
    return builder


def encode_response(save_data, capacity=MAX_MESSAGE_SIZE):
    """Payload for a successful decode, at most `capacity` bytes."""
    return write_response(JsonBuilder(capacity), save_data).getvalue()


def encode_error(error_code, error_message, capacity=MAX_MESSAGE_SIZE):
    """Payload for a failed decode, at most `capacity` bytes."""
    return write_error(
        JsonBuilder(capacity), error_code, error_message).getvalue()


def encode(save_data, capacity=MAX_MESSAGE_SIZE):
    """Whichever of the two payloads `save_data` calls for."""
    if save_data.ok:
        return encode_response(save_data, capacity)
    return encode_error(save_data.error_code, save_data.error_message,
                        capacity)


def encode_into(buffer, save_data):
    """Encode into a writable buffer (bytearray, memoryview...).

    Returns
    -------
    int
        Number of bytes written; never more than ``len(buffer)``.
    """
    payload = encode(save_data, capacity=len(buffer))
    buffer[:len(payload)] = payload
    return len(payload)
