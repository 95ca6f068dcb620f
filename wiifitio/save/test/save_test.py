#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Decode synthetic saves, packed here with `struct`, slot by slot.

"""
from datetime import datetime
import os
import struct

import pytest

from wiifitio import save
from wiifitio.save import _layout as layout
from wiifitio.save._protocol import (
    DecodeObserver, gen_measurements, read_profile, read_profiles)
from wiifitio._util.exceptions import LayoutError, ParseFailure


# setup
def pack_date(year, month, day, hour=0, minute=0):
    return ((year << 20) | ((month - 1) << 16) | (day << 11)
            | (hour << 6) | minute)


def put_profile(buffer, slot, name, height=170, dob=(0x1990, 0x05, 0x10),
                measurements=()):
    base = layout.profile_offset(slot)
    encoded = name.encode('utf-16-be')
    buffer[base + 0x08:base + 0x08 + len(encoded)] = encoded
    buffer[base + 0x1F] = height
    struct.pack_into('>HBB', buffer, base + 0x20, *dob)
    for i, m in enumerate(measurements):
        put_measurement(buffer, base + layout.measurement_offset(i), *m)


def put_measurement(buffer, offset, date_bits, weight, bmi, balance,
                    extended=0):
    struct.pack_into('>IHHHB', buffer, offset,
                     date_bits, weight, bmi, balance, extended)


def make_save(n_slots=layout.MAX_PROFILES):
    return bytearray(n_slots * layout.PROFILE_SIZE)


MAY_10 = pack_date(2023, 5, 10, 23, 15)
MAY_11 = pack_date(2023, 5, 11, 7, 30)


class Recorder(DecodeObserver):
    def __init__(self):
        self.events = []

    def slot_empty(self, slot):
        self.events.append(('empty', slot))

    def profile_found(self, slot, profile):
        self.events.append(('found', slot))

    def measurements_stopped(self, index, reason, weight_raw=None):
        self.events.append(('stopped', index, reason))


# Decoding
# --------
def test_single_profile():
    buffer = make_save(1)
    put_profile(buffer, 0, 'Alice', measurements=[
        (MAY_10, 653, 2210, 510, 1),
        (MAY_11, 650, 2199, 495),
    ])

    save_data = save.decode(bytes(buffer))
    assert save_data.ok
    assert save_data.error_code == 0

    alice, = save_data.profiles
    assert alice.name == 'Alice'
    assert alice.height_cm == 170
    assert alice.dob == '1990-05-10'
    assert alice.activities == ()

    first, second = alice.measurements
    assert first.timestamp == datetime(2023, 5, 10, 23, 15)
    assert first.weight_kg == pytest.approx(65.3)
    assert first.bmi == pytest.approx(22.10)
    assert first.balance_percent == pytest.approx(51.0)
    assert first.has_extended_data
    assert not second.has_extended_data
    assert second.balance_offset == pytest.approx(-0.5)


def test_empty_slots_are_skipped():
    buffer = make_save()
    put_profile(buffer, 2, 'Bob')
    put_profile(buffer, 5, 'Carol')

    recorder = Recorder()
    profiles = read_profiles(buffer, observer=recorder)

    assert [p.name for p in profiles] == ['Bob', 'Carol']
    assert ('empty', 0) in recorder.events
    assert ('found', 2) in recorder.events
    assert ('found', 5) in recorder.events


def test_partial_last_slot_is_ignored():
    buffer = make_save(2)
    put_profile(buffer, 0, 'Alice')
    put_profile(buffer, 1, 'Bob')
    truncated = bytes(buffer[:-1])

    assert [p.name for p in read_profiles(truncated)] == ['Alice']


def test_implausible_weight_ends_table():
    buffer = make_save(1)
    put_profile(buffer, 0, 'Alice', measurements=[
        (MAY_10, 300, 2000, 500),
        (MAY_10, 1500, 2000, 500),
        (MAY_10, 1501, 2000, 500),    # too heavy
        (MAY_10, 700, 2000, 500),     # never reached
    ])

    recorder = Recorder()
    profile = read_profile(buffer, observer=recorder)

    assert [m.weight_kg for m in profile.measurements] == [30.0, 150.0]
    assert ('stopped', 2, 'implausible weight') in recorder.events


def test_zero_weight_means_no_measurements():
    buffer = make_save(1)
    put_profile(buffer, 0, 'Alice')
    assert read_profile(buffer).measurements == ()


def test_measurement_limit():
    buffer = make_save(1)
    put_profile(buffer, 0, 'Alice',
                measurements=[(MAY_10, 700, 2000, 500)] * 5)

    assert len(list(gen_measurements(buffer, limit=3))) == 3


def test_measurements_never_cross_the_profile():
    buffer = make_save(1)
    base = layout.measurement_offset(0)
    n_fit = (layout.PROFILE_SIZE - base) // layout.MEASUREMENT_SIZE
    for i in range(n_fit + 1):
        offset = layout.measurement_offset(i)
        if offset + layout.MEASUREMENT_SIZE <= len(buffer):
            put_measurement(buffer, offset, MAY_10, 700, 2000, 500)

    put_profile(buffer, 0, 'Alice')
    assert len(list(gen_measurements(buffer, limit=2000))) == n_fit
    assert len(list(gen_measurements(buffer))) == layout.MAX_MEASUREMENTS


def test_unused_slot():
    assert read_profile(bytes(layout.PROFILE_SIZE)) is None


def test_short_slot_raises_layout_error():
    with pytest.raises(LayoutError):
        read_profile(bytes(100))


def test_decoding_is_deterministic():
    buffer = make_save(3)
    put_profile(buffer, 1, 'Dave', measurements=[(MAY_11, 812, 2650, 520)])
    assert save.decode(bytes(buffer)) == save.decode(bytes(buffer))


def test_no_profiles():
    with pytest.raises(ParseFailure):
        read_profiles(make_save(2))

    for buffer in (b'', bytes(100), bytes(make_save(1))):
        save_data = save.decode(buffer)
        assert not save_data.ok
        assert save_data.error_code == -4
        assert save_data.error_message == 'No profiles found in save file'
        assert save_data.profiles == ()


# Storage
# -------
@pytest.fixture
def save_file(tmp_path):
    buffer = make_save(2)
    put_profile(buffer, 0, 'Alice', measurements=[(MAY_10, 653, 2210, 510)])
    path = tmp_path / 'FitPlus0.dat'
    path.write_bytes(bytes(buffer))
    return str(path)


def test_read_file(save_file):
    save_data = save.read(save_file)
    assert save_data.ok
    assert save_data.get_profile('Alice').measurement_count == 1


def test_read_missing_file(tmp_path):
    save_data = save.read(str(tmp_path / 'nope.dat'))
    assert save_data.error_code == -2
    assert 'Tried 1 paths' in save_data.error_message


def test_read_nand(tmp_path, save_file):
    path = tmp_path / 'title/00010000/52465045/data/FitPlus0.dat'
    path.parent.mkdir(parents=True)
    os.replace(save_file, str(path))

    save_data = save.read_nand(str(tmp_path))
    assert save_data.ok
    assert save_data.profiles[0].name == 'Alice'


def test_read_nand_nothing_there(tmp_path):
    save_data = save.read_nand(str(tmp_path))
    assert save_data.error_code == -2
    assert 'Tried %d paths' % len(save.SAVE_PATHS) in save_data.error_message
    assert save.SAVE_PATHS[-1] in save_data.error_message


def test_reader_outside_context(save_file):
    reader = save.SaveReader(save.LocalStorage(), (save_file,))
    assert reader.read().error_code == -1


def test_short_read_is_a_read_failure(save_file):
    class ShortStorage(save.LocalStorage):
        def read_fully(self, handle, size):
            return super().read_fully(handle, size)[:-1]

    with save.SaveReader(ShortStorage(), (save_file,)) as reader:
        save_data = reader.read()
    assert save_data.error_code == -3


def test_oversized_file(save_file):
    class HugeStorage(save.LocalStorage):
        def stat(self, handle):
            return 1 << 30

    with save.SaveReader(HugeStorage(), (save_file,)) as reader:
        save_data = reader.read()
    assert save_data.error_code == -6
    assert save_data.error_message == 'Failed to allocate %d bytes' % (1 << 30)


def test_scan_paths(tmp_path):
    path = tmp_path / save.SAVE_PATHS[2].lstrip('/')
    path.parent.mkdir(parents=True)
    path.write_bytes(b'')

    found = [p for p, ok in save.scan_paths(save.LocalStorage(str(tmp_path)))
             if ok]
    assert found == [save.SAVE_PATHS[2]]
