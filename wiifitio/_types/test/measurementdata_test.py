#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime

import numpy as np
import pytest

from wiifitio import tools
from wiifitio._types import columns
from wiifitio._types.measurementdata import MeasurementData
from wiifitio._types.records import Measurement, Profile, SaveData
from wiifitio._util.exceptions import NotFound


# setup
alice = Profile('Alice', 170, 1990, 5, 10, measurements=[
    Measurement(datetime(2023, 5, 1, 8), 66.0, 22.84, 49.0, False),
    Measurement(datetime(2023, 5, 8, 8), 65.5, 22.66, 50.5, True),
    Measurement(datetime(2023, 5, 10, 23, 15), 65.3, 22.60, 51.0, False),
])
nobody = Profile('Nobody', 0, 2000, 1, 1)


# Records
# -------
def test_profile_fields():
    assert alice.dob == '1990-05-10'
    assert alice.measurement_count == 3
    assert alice.activity_count == 0
    assert isinstance(alice.measurements, tuple)


def test_measurement_from_raw():
    m = Measurement._from_raw(datetime(2023, 5, 10), 653, 2210, 510, 1)
    assert m.weight_kg == pytest.approx(65.3)
    assert m.bmi == pytest.approx(22.1)
    assert m.balance_percent == pytest.approx(51.0)
    assert m.has_extended_data is True
    assert m.weight_lbs == pytest.approx(143.96, abs=0.01)


def test_save_data_results():
    ok = SaveData.success([alice])
    assert ok.ok and ok.profile_count == 1
    assert ok.get_profile('Alice') is alice
    with pytest.raises(KeyError):
        ok.get_profile('Bob')

    failed = SaveData.from_error(NotFound(12, '/title/x'))
    assert not failed.ok
    assert failed.error_code == -2
    assert failed.error_message == 'Save not found. Tried 12 paths. Last: /title/x'


def test_save_data_invariants():
    with pytest.raises(ValueError):
        SaveData.success([])
    with pytest.raises(ValueError):
        SaveData.failure(0, 'not really')


# Tabular view
# ------------
def test_frame_columns():
    data = alice.to_frame()
    assert isinstance(data, MeasurementData)
    assert list(data.columns) == ['has_extended_data', 'weight', 'bmi',
                                  'balance']
    assert data.index.name == 'date'
    assert len(data) == 3

    assert isinstance(data['weight'], columns.Weight)
    assert isinstance(data['balance'], columns.Balance)
    assert data.profile == 'Alice'
    assert data.height_cm == 170


def test_frame_units():
    data = alice.to_frame()
    assert np.allclose(data['weight'].lbs.values,
                       [145.505, 144.403, 143.962], atol=0.001)
    assert np.allclose(data['balance'].offset.values, [-1.0, 0.5, 1.0])


def test_frame_time_zone():
    data = alice.to_frame(tz_str='Europe/London')
    assert str(data.index.tz) == 'Europe/London'
    assert data.index[0].hour == 8


def test_empty_frame():
    data = nobody.to_frame()
    assert data.empty
    assert data.latest() is None
    assert data.weight_change(30, reference=datetime(2023, 6, 1)) is None


def test_latest():
    latest = alice.to_frame().latest()
    assert latest['weight'] == pytest.approx(65.3)


def test_weight_change():
    data = alice.to_frame()
    reference = datetime(2023, 5, 11)
    assert data.weight_change(30, reference) == pytest.approx(-0.7)
    assert data.weight_change(5, reference) == pytest.approx(-0.2)
    assert data.weight_change(30, datetime(2024, 1, 1)) is None


def test_trend():
    trend = alice.to_frame().trend('weight', 2)
    assert np.isnan(trend.iloc[0])
    expected = np.sum(np.array([66.0, 65.5]) * tools.exp_weights(2))
    assert trend.iloc[1] == pytest.approx(expected)


def test_implied_bmi():
    data = alice.to_frame()
    assert np.allclose(data.implied_bmi().values,
                       np.array([66.0, 65.5, 65.3]) / 1.7**2)
    assert nobody.to_frame().implied_bmi().empty


# Tools
# -----
def test_bmi():
    assert tools.bmi(65.3, 172) == pytest.approx(22.07, abs=0.01)
    assert np.isnan(tools.bmi(65.3, 0))
    assert np.allclose(tools.bmi(np.array([50.0, 100.0]), 200),
                       [12.5, 25.0])


def test_exp_weights():
    weights = tools.exp_weights(3)
    assert weights.sum() == pytest.approx(1.0)
    assert list(weights) == sorted(weights)    # recent values count most
