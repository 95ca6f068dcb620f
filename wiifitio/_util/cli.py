#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
main is installed as the `wiifit` console_script with this package.

    wiifit decode FitPlus0.dat
    wiifit decode FitPlus0.dat --csv --profile Alice --output alice.csv
    wiifit serve --nand-root ./nand --port 8888
    wiifit fetch 192.168.1.20
    wiifit scan --nand-root ./nand

"""
from argparse import ArgumentParser
import logging
import sys

from wiifitio import save, sync
from wiifitio.save._protocol import LoggingObserver
from wiifitio._util.console import (
    decorate, indented_stdout, printd, setup_logging)
from wiifitio._util.exceptions import SyncError, describe


logger = logging.getLogger(__name__)


def _read(args):
    observer = LoggingObserver()
    if args.nand_root is not None:
        return save.read_nand(args.nand_root, observer=observer)
    return save.read(args.save, observer=observer)


def _print_error(code, message):
    printd('%s (%d): %s' % (describe(code), code, message), 'fail')


def print_summary(save_data):
    """Profiles with their measurement counts and date range."""
    printd('%d profile(s)' % save_data.profile_count, 'header', 'bold')
    for profile in save_data.profiles:
        printd(profile.name, 'bold')
        with indented_stdout(2):
            print('height: %d cm, born: %s' % (profile.height_cm, profile.dob))
            print('measurements: %d' % profile.measurement_count)
            if profile.measurements:
                first, last = profile.measurements[0], profile.measurements[-1]
                for label, m in (('first', first), ('last', last)):
                    print('%s: %s  %s kg  BMI %s  balance %s%%' % (
                        label, m.timestamp.isoformat(sep=' '),
                        decorate('%.1f' % m.weight_kg, 'green'),
                        '%.2f' % m.bmi, '%.1f' % m.balance_percent))


def _write(text, output):
    if output is None:
        print(text)
    else:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)


def decode(args):
    save_data = _read(args)
    if not save_data.ok:
        _print_error(save_data.error_code, save_data.error_message)
        return 1

    if args.csv:
        try:
            profile = (save_data.get_profile(args.profile) if args.profile
                       else save_data.profiles[0])
        except KeyError:
            printd('No profile named %r' % args.profile, 'fail')
            return 1
        data = profile.to_frame(tz_str=args.tz)
        _write(data.to_csv(na_rep='NA', index_label='date'), args.output)
    elif args.json:
        _write(sync.encode(save_data).decode('utf-8'), args.output)
    else:
        print_summary(save_data)
    return 0


def serve(args):
    # Decoding finishes, and storage is released, before the socket opens.
    save_data = _read(args)
    if not save_data.ok:
        _print_error(save_data.error_code, save_data.error_message)
        logger.warning('Serving the error to clients')

    config = sync.DEFAULT_CONFIG.replace(
        host=args.host, port=args.port, request_timeout_s=args.timeout)
    server = sync.SyncServer(save_data, config)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        printd('Stopped', 'warning')
    except SyncError as e:
        printd('Server error (%d): %s' % (e.code, e), 'fail')
        return 1
    return 0


def fetch(args):
    try:
        save_data = sync.fetch(args.host, args.port, timeout=args.timeout)
    except sync.ServerError as e:
        _print_error(e.code, e.server_message)
        return 1
    except (OSError, ValueError) as e:
        printd('Fetch failed: %s' % e, 'fail')
        return 1

    if args.json:
        _write(sync.encode(save_data).decode('utf-8'), args.output)
    else:
        print_summary(save_data)
    return 0


def scan(args):
    storage = save.LocalStorage(args.nand_root)
    n_found = 0
    for path, found in save.scan_paths(storage):
        n_found += found
        if found:
            printd('found    ' + path, 'green')
        else:
            print('missing  ' + path)
    return 0 if n_found else 1


def _add_source(parser):
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('save',
                        nargs='?',
                        type=str,
                        help='FitPlus0.dat or RPHealth.dat')
    source.add_argument('--nand-root',
                        type=str,
                        metavar='dir',
                        default=None,
                        help='search an extracted NAND tree instead')


def build_parser():
    parser = ArgumentParser(prog='wiifit',
                            description='read and serve Wii Fit save data')
    parser.add_argument('-v', '--verbose',
                        action='store_true',
                        help='log decoder details')
    commands = parser.add_subparsers(dest='command')
    commands.required = True

    p = commands.add_parser('decode', help='summarise or convert a save')
    _add_source(p)
    output = p.add_mutually_exclusive_group()
    output.add_argument('--csv',
                        action='store_true',
                        help="print a profile's measurements as CSV")
    output.add_argument('--json',
                        action='store_true',
                        help='print the payload sync clients receive')
    p.add_argument('--profile',
                   type=str,
                   default=None,
                   help='optional; profile for --csv (default: the first)')
    p.add_argument('--tz',
                   type=str,
                   default=None,
                   help='optional; time zone the console clock was set to')
    p.add_argument('--output',
                   type=str,
                   metavar='filename',
                   default=None,
                   help='optional; file to write to')
    p.set_defaults(func=decode)

    p = commands.add_parser('serve', help='decode then serve over TCP')
    _add_source(p)
    p.add_argument('--host', type=str, default=None)
    p.add_argument('--port', type=int, default=None)
    p.add_argument('--timeout',
                   type=float,
                   default=None,
                   help='seconds a client has to send its request')
    p.set_defaults(func=serve)

    p = commands.add_parser('fetch', help='sync from a running server')
    p.add_argument('host', type=str)
    p.add_argument('--port', type=int, default=sync.DEFAULT_CONFIG.port)
    p.add_argument('--timeout', type=float, default=30)
    p.add_argument('--json', action='store_true')
    p.add_argument('--output', type=str, metavar='filename', default=None)
    p.set_defaults(func=fetch)

    p = commands.add_parser('scan', help='list candidate save locations')
    p.add_argument('--nand-root', type=str, metavar='dir', required=True)
    p.set_defaults(func=scan)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
