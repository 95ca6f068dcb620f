#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Immutable records produced by the save decoder.

"""
from collections import namedtuple


class Measurement(namedtuple('Measurement', (
        'timestamp', 'weight_kg', 'bmi', 'balance_percent',
        'has_extended_data'))):
    """One body test: weight, BMI and centre-of-balance.

    `balance_percent` is 50.0 when perfectly centred; above 50 leans right.
    """
    __slots__ = ()

    @classmethod
    def _from_raw(cls, timestamp, weight_raw, bmi_raw, balance_raw,
                  has_extended_data=False):
        # fixed-point --> decimal
        return cls(timestamp, weight_raw / 10, bmi_raw / 100,
                   balance_raw / 10, bool(has_extended_data))

    @property
    def weight_lbs(self):
        return self.weight_kg * 2.20462

    @property
    def balance_offset(self):
        """Positive is right, negative is left."""
        return self.balance_percent - 50.0


class Profile(namedtuple('Profile', (
        'name', 'height_cm', 'birth_year', 'birth_month', 'birth_day',
        'measurements', 'activities'))):
    """A user slot of the save, with its measurement history.

    `measurements` keeps the order of the table in the save. `activities`
    is always empty; that part of the format is not understood.
    """
    __slots__ = ()

    def __new__(cls, name, height_cm, birth_year, birth_month, birth_day,
                measurements=(), activities=()):
        return super().__new__(cls, name, height_cm, birth_year, birth_month,
                               birth_day, tuple(measurements),
                               tuple(activities))

    @property
    def dob(self):
        """Birth date as an ISO string. Not validated, so not a `date`."""
        return '%04d-%02d-%02d' % (
            self.birth_year, self.birth_month, self.birth_day)

    @property
    def measurement_count(self):
        return len(self.measurements)

    @property
    def activity_count(self):
        return len(self.activities)

    def to_frame(self, *, tz_str=None):
        """Measurement history as a `MeasurementData` frame."""
        # Import here: pandas is slow to import and the decoder
        # doesn't need it.
        from wiifitio._types.measurementdata import MeasurementData
        return MeasurementData.from_profile(self, tz_str=tz_str)


class SaveData(namedtuple('SaveData', 'profiles error_code error_message')):
    """Result of decoding one save file.

    Either at least one profile and ``error_code == 0``, or no profiles and
    a non-zero code with a message. Build with `success` or `failure`.
    """
    __slots__ = ()

    @classmethod
    def success(cls, profiles):
        profiles = tuple(profiles)
        if not profiles:
            raise ValueError('a successful decode has at least one profile')
        return cls(profiles, 0, '')

    @classmethod
    def failure(cls, error_code, error_message):
        if error_code == 0:
            raise ValueError('failures need a non-zero error code')
        return cls((), error_code, error_message)

    @classmethod
    def from_error(cls, error):
        """From a `DecodeError` (anything with `code` and a message)."""
        return cls.failure(error.code, str(error))

    @property
    def ok(self):
        return self.error_code == 0 and len(self.profiles) > 0

    @property
    def profile_count(self):
        return len(self.profiles)

    def get_profile(self, name):
        for profile in self.profiles:
            if profile.name == name:
                return profile
        raise KeyError(name)
