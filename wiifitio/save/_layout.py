#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Byte layout of the save file, as an explicit schema.

Each block is a table of (name, offset, width, codec). A block is checked
once against the length of the slice it is about to read, so individual
field reads never go out of bounds.

Offsets come from hex dumps of Japanese Wii Fit Plus saves and the notes
at [1]_ and [2]_. Other regional builds and the original Wii Fit may use a
different measurement stride; nothing here tries to detect that.


.. [1] https://jansenprice.com/blog?id=9-Extracting-Data-from-Wii-Fit-Plus-Savegame-Files
.. [2] https://gist.github.com/yoshi314/c63664debc140593c7fccdadc5cea632

"""
from collections import namedtuple

from wiifitio.save import _codec as codec
from wiifitio._util.exceptions import LayoutError


MAX_PROFILES = 8
MAX_MEASUREMENTS = 1024

PROFILE_SIZE = 0x9289
NAME_UNITS = 10                 # UTF-16 code units
MEASUREMENT_OFFSET = 0x3661     # relative to the profile start
MEASUREMENT_SIZE = 21

# Plausible weights, in tenths of a kilogram. Anything outside this range
# is taken to mean "past the last record"; the table has no terminator.
MIN_WEIGHT_RAW = 300
MAX_WEIGHT_RAW = 1500


class Field(namedtuple('Field', 'name offset width codec')):
    __slots__ = ()

    @property
    def end(self):
        return self.offset + self.width

    def read(self, data, base=0):
        return self.codec(data, base + self.offset)


class Block:
    """A fixed-size region made of fields at fixed offsets.

    Attributes
    ----------
    name : str
        For error messages.
    size : int
        Declared extent of the block in bytes; at least the furthest field.
    fields : dict
        Field objects by name, in declaration order.
    """
    def __init__(self, name, size, fields):
        self.name = name
        self.fields = {field.name: field for field in fields}
        self.size = size
        furthest = max(field.end for field in fields)
        if furthest > size:
            raise ValueError('%s fields overrun its size' % name)

    def fits(self, data, base=0):
        return base >= 0 and base + self.size <= len(data)

    def check(self, data, base=0):
        if not self.fits(data, base):
            raise LayoutError(self.name, base + self.size, len(data))

    def read(self, data, base=0):
        """Check bounds once, then decode every field into a dict."""
        self.check(data, base)
        return {name: field.read(data, base)
                for name, field in self.fields.items()}

    def read_field(self, data, name, base=0):
        self.check(data, base)
        return self.fields[name].read(data, base)


def _utf16_name(data, offset):
    end = offset + 2 * NAME_UNITS
    return codec.decode_utf16be(data[offset:end], NAME_UNITS)


def _packed_date(data, offset):
    return codec.decode_packed_date(codec.read_u32_be(data, offset))


def _flag(data, offset):
    return data[offset] != 0


PROFILE = Block('profile', PROFILE_SIZE, (
    Field('name', 0x08, 2 * NAME_UNITS, _utf16_name),
    Field('height_cm', 0x1F, 1, codec.read_u8),
    Field('birth_date', 0x20, 4, codec.decode_bcd_date),
))

MEASUREMENT = Block('measurement', MEASUREMENT_SIZE, (
    Field('timestamp', 0, 4, _packed_date),
    Field('weight_raw', 4, 2, codec.read_u16_be),
    Field('bmi_raw', 6, 2, codec.read_u16_be),
    Field('balance_raw', 8, 2, codec.read_u16_be),
    Field('has_extended_data', 10, 1, _flag),
))


def profile_offset(slot):
    return slot * PROFILE_SIZE


def measurement_offset(index):
    """Offset of the `index`-th measurement record within a profile."""
    return MEASUREMENT_OFFSET + index * MEASUREMENT_SIZE


def weight_is_plausible(raw):
    return MIN_WEIGHT_RAW <= raw <= MAX_WEIGHT_RAW
