#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from wiifitio._types.base import SeriesSubclass, series_property


REGISTRY = {}    # grows at import-time via the below metaclass


class SpecialRegistrar(type):
    def __init__(cls, name, bases, namespace):
        if name != 'SpecialColumn':
            REGISTRY[cls.colname] = cls
        super().__init__(name, bases, namespace)


class SpecialColumn(SeriesSubclass, metaclass=SpecialRegistrar):
    _metadata = ['colname', 'base_unit']

    def __init__(self, data=None, *args, **kwargs):
        super().__init__(data, *args, **kwargs)
        self.name = self.__class__.colname     # use *class* attribute


# ----------------------------------------------------------
# NOTE: subclasses should follow the structure...
#   + classmethods (i.e. alternative constructors; private!)
#   + general methods
#   + properties
# ----------------------------------------------------------


class Weight(SpecialColumn):
    colname = 'weight'
    base_unit = 'kg'

    def change(self):
        """Latest minus earliest, or NaN when empty."""
        valid = self.dropna()
        if valid.empty:
            return float('nan')
        return float(valid.iloc[-1] - valid.iloc[0])

    @series_property
    def lbs(self):
        """ kilograms --> pounds """
        return self * 2.20462


class BMI(SpecialColumn):
    colname = 'bmi'
    base_unit = 'kg/m^2'


class Balance(SpecialColumn):
    colname = 'balance'
    base_unit = '%'

    @series_property
    def offset(self):
        """ % --> offset from centre (positive is right) """
        return self - 50.0
