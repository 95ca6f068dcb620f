#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
import struct

import pytest

from wiifitio.save import _layout as layout
from wiifitio._util import cli, console


@pytest.fixture(autouse=True)
def quiet(monkeypatch):
    monkeypatch.setattr(cli, 'setup_logging', lambda level: None)


@pytest.fixture
def save_file(tmp_path):
    buffer = bytearray(2 * layout.PROFILE_SIZE)
    for slot, name in enumerate(('Alice', 'Bob')):
        base = layout.profile_offset(slot)
        encoded = name.encode('utf-16-be')
        buffer[base + 0x08:base + 0x08 + len(encoded)] = encoded
        buffer[base + 0x1F] = 170
        struct.pack_into('>HBB', buffer, base + 0x20, 0x1990, 0x05, 0x10)
        struct.pack_into('>IHHHB', buffer, base + layout.MEASUREMENT_OFFSET,
                         0x7E7455CF, 653 + slot, 2210, 510, 0)
    path = tmp_path / 'FitPlus0.dat'
    path.write_bytes(bytes(buffer))
    return str(path)


def test_decode_summary(save_file, capsys):
    assert cli.main(['decode', save_file]) == 0
    out = capsys.readouterr().out
    assert '2 profile(s)' in out
    assert 'Alice' in out and 'Bob' in out
    assert 'measurements: 1' in out
    assert '2023-05-10 23:15:00' in out


def test_decode_json(save_file, capsys):
    assert cli.main(['decode', save_file, '--json']) == 0
    obj = json.loads(capsys.readouterr().out)
    assert obj['version'] == 2
    assert obj['profiles'][1]['measurements'][0]['weight_kg'] == 65.4


def test_decode_csv(save_file, tmp_path):
    output = str(tmp_path / 'bob.csv')
    assert cli.main(['decode', save_file, '--csv', '--profile', 'Bob',
                     '--output', output]) == 0
    with open(output, encoding='utf-8') as f:
        header, row = f.read().splitlines()
    assert header == 'date,has_extended_data,weight,bmi,balance'
    assert row.startswith('2023-05-10 23:15:00,False,65.4,22.1')


def test_decode_unknown_profile(save_file):
    assert cli.main(['decode', save_file, '--csv', '--profile', 'Zed']) == 1


def test_decode_missing(tmp_path, capsys):
    assert cli.main(['decode', str(tmp_path / 'nope.dat')]) == 1
    assert 'Save file not found (-2)' in capsys.readouterr().out


def test_scan(tmp_path, capsys):
    assert cli.main(['scan', '--nand-root', str(tmp_path)]) == 1
    assert 'missing' in capsys.readouterr().out


def test_source_is_required():
    with pytest.raises(SystemExit):
        cli.main(['decode'])


def test_decorate():
    assert console.decorate('x') == 'x'
    assert console.decorate('x', 'bold') == '\033[1mx\033[0m'
