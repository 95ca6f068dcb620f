#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from pandas import DataFrame, Series


__all__ = ('DataFrameSubclass', 'SeriesSubclass', 'series_property')


class _KeepsMetadata:
    """pandas subclassing hooks shared by the frame and column types.

    Names listed in `_metadata` survive slicing, arithmetic and the like.
    """
    _metadata = []

    @property
    def _constructor(self):
        return type(self)

    def __finalize__(self, other, method=None, **kwargs):
        for name in self._metadata:
            object.__setattr__(self, name, getattr(other, name, None))
        return self


class DataFrameSubclass(_KeepsMetadata, DataFrame):
    pass


class SeriesSubclass(_KeepsMetadata, Series):
    pass


class series_property:
    """Like `property`, but the result is a plain Series named after the
    property and aligned to the owner's index (e.g. ``weight.lbs``)."""
    def __init__(self, fget):
        self.fget = fget
        self.name = fget.__name__
        self.__doc__ = fget.__doc__

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return Series(self.fget(obj), index=obj.index,
                      name='%s_%s' % (obj.name, self.name))
