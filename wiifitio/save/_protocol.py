#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Decode profiles and their body measurements from a save buffer.

The save is a run of fixed-size profile slots. An unused slot has an empty
name. Inside a used slot, body tests live in a fixed-stride table with no
length field and no terminator, so the weight of each record doubles as a
validity check: the first implausible weight ends the table.

Nothing here prints. Pass a `DecodeObserver` to see what the decoder is
doing; `LoggingObserver` sends it to the `logging` module.

TODO:
-----
    + activity records (yoga, strength, aerobics...) are still unparsed;
      they need two saves from the same console to diff

"""
import logging

from wiifitio.save import _layout as layout
from wiifitio._types.records import Measurement, Profile
from wiifitio._util.exceptions import ParseFailure


logger = logging.getLogger(__name__)


class DecodeObserver:
    """Receives diagnostics from the decoder. Every hook is a no-op here."""

    def slot_empty(self, slot):
        pass

    def slot_out_of_range(self, slot, buffer_size):
        pass

    def profile_found(self, slot, profile):
        pass

    def measurements_stopped(self, index, reason, weight_raw=None):
        """`reason` is one of 'implausible weight', 'end of profile'
        or 'limit'."""


class LoggingObserver(DecodeObserver):
    def __init__(self, logger=logger, level=logging.DEBUG):
        self.logger = logger
        self.level = level

    def slot_empty(self, slot):
        self.logger.log(self.level, 'Slot %d is empty', slot)

    def slot_out_of_range(self, slot, buffer_size):
        self.logger.log(self.level,
                        'Slot %d does not fit in %d bytes', slot, buffer_size)

    def profile_found(self, slot, profile):
        self.logger.log(self.level, 'Slot %d: %r, %d measurements',
                        slot, profile.name, profile.measurement_count)

    def measurements_stopped(self, index, reason, weight_raw=None):
        if weight_raw is None:
            self.logger.log(self.level, 'Stop@%d (%s)', index, reason)
        else:
            self.logger.log(self.level, 'Stop@%d w=%d (%s)',
                            index, weight_raw, reason)


NULL_OBSERVER = DecodeObserver()


def gen_measurements(profile_data, base=0, *, observer=NULL_OBSERVER,
                     limit=layout.MAX_MEASUREMENTS):
    """Generator over the body measurements of one profile.

    Parameters
    ----------
    profile_data : bytes-like
        Buffer holding the profile.
    base : int, optional
        Offset of the profile within `profile_data`.
    observer : DecodeObserver, optional
    limit : int, optional
        Hard cap on the number of records scanned.

    Yields
    ------
    Measurement
        In table order. Stops, without error, at the first record with an
        implausible weight, at the first record that would cross the end
        of the profile, or after `limit` records.
    """
    profile_end = base + layout.PROFILE_SIZE
    record = layout.MEASUREMENT

    for i in range(limit):
        start = base + layout.measurement_offset(i)

        if start + record.size > min(profile_end, len(profile_data)):
            observer.measurements_stopped(i, 'end of profile')
            return

        # Weight first: it decides whether this is a record at all.
        weight_raw = record.read_field(profile_data, 'weight_raw', start)
        if not layout.weight_is_plausible(weight_raw):
            observer.measurements_stopped(i, 'implausible weight', weight_raw)
            return

        fields = record.read(profile_data, start)
        yield Measurement._from_raw(
            fields['timestamp'], fields['weight_raw'], fields['bmi_raw'],
            fields['balance_raw'], fields['has_extended_data'])

    observer.measurements_stopped(limit, 'limit')


def read_profile(profile_data, base=0, *, observer=NULL_OBSERVER):
    """Decode the profile starting at `base`, or None for an unused slot.

    The name is read first and an empty one short-circuits everything
    else. The birth date is taken as is; it is never validated.
    """
    layout.PROFILE.check(profile_data, base)

    name = layout.PROFILE.read_field(profile_data, 'name', base)
    if not name:
        return None

    fields = layout.PROFILE.read(profile_data, base)
    birth_year, birth_month, birth_day = fields['birth_date']

    return Profile(
        name=name,
        height_cm=fields['height_cm'],
        birth_year=birth_year,
        birth_month=birth_month,
        birth_day=birth_day,
        measurements=gen_measurements(profile_data, base, observer=observer),
        activities=(),
    )


def gen_profiles(save_data, *, observer=NULL_OBSERVER,
                 limit=layout.MAX_PROFILES):
    """Generator over the used profile slots, in slot order."""
    for slot in range(limit):
        base = layout.profile_offset(slot)
        if not layout.PROFILE.fits(save_data, base):
            observer.slot_out_of_range(slot, len(save_data))
            return

        profile = read_profile(save_data, base, observer=observer)
        if profile is None:
            observer.slot_empty(slot)
            continue

        observer.profile_found(slot, profile)
        yield profile


def read_profiles(save_data, *, observer=NULL_OBSERVER):
    """All profiles in the save.

    Raises
    ------
    ParseFailure
        If not a single used slot was found.
    """
    profiles = tuple(gen_profiles(memoryview(save_data), observer=observer))
    if not profiles:
        raise ParseFailure()
    return profiles
