#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime, timedelta

import numpy as np
import pytz
from pandas import DatetimeIndex, Series

from wiifitio import tools
from wiifitio._types import columns
from wiifitio._types.base import DataFrameSubclass


COLUMN_SPEC = {
    'weight_kg': columns.Weight,
    'bmi': columns.BMI,
    'balance_percent': columns.Balance,
}


class MeasurementData(DataFrameSubclass):
    """Body measurements of one profile, indexed by date."""
    _metadata = ['profile', 'height_cm']

    @classmethod
    def from_profile(cls, profile, *, tz_str=None):
        records = [m._asdict() for m in profile.measurements]
        data = cls.from_records(
            records, columns=('timestamp',) + tuple(COLUMN_SPEC)
            + ('has_extended_data',))

        timestamps = DatetimeIndex(data.pop('timestamp'), name='date')
        if tz_str is not None:
            timestamps = timestamps.tz_localize(pytz.timezone(tz_str))

        data._finish_up(column_spec=COLUMN_SPEC, index=timestamps)
        data.profile = profile.name
        data.height_cm = profile.height_cm
        return data

    def __getitem__(self, key):
        """Create the illusion of Series subclasses in the DataFrame."""
        item = super().__getitem__(key)
        if isinstance(key, str) and key in columns.REGISTRY:
            return columns.REGISTRY[key](item)
        return item

    def latest(self):
        """The most recent measurement as a Series, or None."""
        if self.empty:
            return None
        return self.sort_index().iloc[-1]

    def weight_change(self, days, reference=None):
        """Weight gained (positive) or lost over the last `days` days.

        Parameters
        ----------
        days : int
        reference : datetime, optional
            End of the window; defaults to now.

        Returns
        -------
        float or None
            None when no measurement falls in the window.
        """
        if reference is None:
            reference = datetime.now(getattr(self.index, 'tz', None))
        cutoff = reference - timedelta(days=days)

        in_window = self.sort_index()
        in_window = in_window[in_window.index >= cutoff]
        if in_window.empty:
            return None
        return in_window['weight'].change()

    def trend(self, column, n):
        """Exponentially weighted moving average over `n` measurements."""
        values = self[column].sort_index()
        smoothed = values.rolling(n).apply(tools.ewa(n), raw=True)
        return Series(smoothed.values, index=values.index,
                      name=column + '_trend')

    def implied_bmi(self):
        """BMI recomputed from weight and the profile's height."""
        if not self.height_cm:
            return Series(np.nan, index=self.index, name='bmi')
        return Series(tools.bmi(self['weight'].values, self.height_cm),
                      index=self.index, name='bmi')

    # Private methods
    # ---------------
    def _finish_up(self, *, column_spec, index=None):
        """A pseudo-init method, used internally."""
        for old_key, column_cls in column_spec.items():
            try:
                old_column = self.pop(old_key)  # no default
            except KeyError:
                continue

            new = column_cls(old_column)
            self[new.colname] = new

        if index is not None:
            self.index = index

