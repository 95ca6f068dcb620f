#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General tools that complement the API.

"""
import numpy as np


def bmi(weight_kg, height_cm):
    """Body Mass Index.

    Parameters
    ----------
    weight_kg : scalar or numpy array
    height_cm : scalar or numpy array

    Returns
    -------
    float or numpy array
        NaN wherever the height is zero.

    Examples
    --------
        >>> round(bmi(65.3, 172), 2)
        22.07
    """
    weight_kg = np.asarray(weight_kg, dtype=float)
    height_m = np.asarray(height_cm, dtype=float) / 100
    with np.errstate(divide='ignore', invalid='ignore'):
        out = np.where(height_m > 0, weight_kg / height_m**2, np.nan)
    return out if out.ndim else float(out)


def exp_weights(n):
    """Simple exponential weights function.

        >>> w = exp_weights(3)
        >>> print(w)
        [0.14285714 0.28571429 0.57142857]
        >>> sum(w)
        1.0
    """
    alpha = 2 / (n + 1)
    weights = np.array([alpha * (1 - alpha)**(-i) for i in range(n)])
    return weights / weights.sum()


def ewa(n, *, ignore_nan=True):
    """Exponentially weighted average.

    Returns a callable suitable for ``Series.rolling().apply(raw=True)``.

    Notes
    -----
    Effectively ``min_periods=n``, as is the default behaviour of pandas.
    """
    weights = exp_weights(n)
    sumfunc = np.nansum if ignore_nan else np.sum

    def func(arr):
        return sumfunc(arr * weights) if len(arr) == n else np.nan
    return func
