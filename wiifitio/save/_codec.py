#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Primitive field readers for the save format.

Everything in the save is big-endian (the console is a PowerPC machine).
These are pure functions over byte slices; bounds are the caller's problem
and short input raises `struct.error`.

"""
from datetime import datetime, timedelta
from struct import unpack_from


NAME_CAPACITY = 23    # UTF-8 bytes, not counting a terminator

# (shift, mask) for each field of the packed date bitfield
YEAR_BITS = (20, 0x7FF)
MONTH_BITS = (16, 0xF)     # zero-based
DAY_BITS = (11, 0x1F)
HOUR_BITS = (6, 0x1F)
MINUTE_BITS = (0, 0x3F)

# Out-of-range date components fall back to these.
DEFAULT_YEAR, MIN_YEAR, MAX_YEAR = 2020, 2006, 2030
DEFAULT_MONTH = DEFAULT_DAY = 1
DEFAULT_HOUR = DEFAULT_MINUTE = 0


def read_u8(data, offset=0):
    return data[offset]


def read_u16_be(data, offset=0):
    value, = unpack_from('>H', data, offset)
    return value


def read_u32_be(data, offset=0):
    value, = unpack_from('>I', data, offset)
    return value


def decode_utf16be(data, max_units, capacity=NAME_CAPACITY):
    """Transcode a zero-terminated UTF-16BE field.

    Reads at most `max_units` code units, stopping early at a zero unit.
    Each unit is treated as a code point below U+10000 (the save never
    stores surrogate pairs) and re-encoded with the usual 1, 2 or 3 byte
    UTF-8 sequences. Output stops before any character that would take
    the encoded length past `capacity` bytes.

    Parameters
    ----------
    data : bytes-like
        The raw field; may be shorter than ``2 * max_units``.
    max_units : int
        Maximum number of 16-bit units to consume.
    capacity : int, optional
        Size limit of the UTF-8 result in bytes.

    Returns
    -------
    str
    """
    out = bytearray()
    n_units = min(max_units, len(data) // 2)

    for i in range(n_units):
        ch = (data[2 * i] << 8) | data[2 * i + 1]
        if ch == 0:
            break

        if ch < 0x80:
            encoded = bytes((ch,))
        elif ch < 0x800:
            encoded = bytes((0xC0 | (ch >> 6),
                             0x80 | (ch & 0x3F)))
        else:
            encoded = bytes((0xE0 | (ch >> 12),
                             0x80 | ((ch >> 6) & 0x3F),
                             0x80 | (ch & 0x3F)))

        if len(out) + len(encoded) > capacity:
            break
        out += encoded

    # Lone surrogates are the only thing that won't round-trip.
    return out.decode('utf-8', 'replace')


def _bits(value, spec):
    shift, mask = spec
    return (value >> shift) & mask


def decode_packed_date(bits):
    """Unpack the 32-bit date used throughout the save.

    =====  ===========================
    Bits   Field
    =====  ===========================
    20-30  year
    16-19  month (zero-based)
    11-15  day
     6-10  hour
     0-5   minute
    =====  ===========================

    Components outside their calendar range are replaced by defaults
    (2020-01-01 00:00) instead of failing; old records are noisy.

        >>> decode_packed_date(0x7E7455CF)
        datetime.datetime(2023, 5, 10, 23, 15)
    """
    year = _bits(bits, YEAR_BITS)
    month = _bits(bits, MONTH_BITS) + 1
    day = _bits(bits, DAY_BITS)
    hour = _bits(bits, HOUR_BITS)
    minute = _bits(bits, MINUTE_BITS)

    if not MIN_YEAR <= year <= MAX_YEAR:
        year = DEFAULT_YEAR
    if not 1 <= month <= 12:
        month = DEFAULT_MONTH
    if not 1 <= day <= 31:
        day = DEFAULT_DAY
    if not 0 <= hour <= 23:
        hour = DEFAULT_HOUR
    if not 0 <= minute <= 59:
        minute = DEFAULT_MINUTE

    # A day past the end of its month rolls over (Feb 30 --> Mar 2).
    return (datetime(year, month, 1, hour, minute)
            + timedelta(days=day - 1))


def bcd_digits(value, n_digits):
    """Read `n_digits` nibbles as decimal digits, most significant first.

    No validation: a nibble above 9 just contributes its face value.
    """
    total = 0
    for shift in range(4 * (n_digits - 1), -1, -4):
        total = total * 10 + ((value >> shift) & 0xF)
    return total


def decode_bcd_date(data, offset=0):
    """Birth date stored as YYYY (2 bytes) MM DD, all BCD.

    Returns a (year, month, day) tuple of plain ints.
    """
    year = bcd_digits(read_u16_be(data, offset), 4)
    month = bcd_digits(data[offset + 2], 2)
    day = bcd_digits(data[offset + 3], 2)
    return year, month, day
