"""
nagtrap - relay one service result to a Nagios trap receiver.

Usage:
    nagtrap -s STATE -n SERVICE -o OUTPUT [-d NNMS] [-H HOSTNAME] [--settings FILE] [-v]
    nagtrap -h | --man | -V

Sends a single SNMPv2c trap in NAGIOS-NOTIFY-MIB service event form
(nSvcEvent, 1.3.6.1.4.1.20006.1.7) describing the result of a passive
service check. The receiving Nagios host turns it into a passive check
result for SERVICE on this host.

Options:
    -s, --state STATE       ok, warning, critical or unknown (any case)
    -n, --service SERVICE   service description as known to Nagios
    -o, --output OUTPUT     plugin output; anything from the first '|' on
                            (performance data) is removed. An empty value
                            counts as missing.
    -d, --nnms HOST         trap receiver; overrides $NAGTRAP_NNMS and the
                            NNMS line of /etc/nagtrap.conf
    -H, --hostname FQDN     origin host; overrides $NAGTRAP_FQDN and the
                            name the resolver reports for this machine
    --settings FILE         YAML settings file (default /etc/nagtrap/settings.yaml)
    -v, --verbose           more logging on stderr; repeat for debug output
    -h, --help              short usage
    --man                   this text
    -V, --version           version and environment diagnostics

Destination:
    The receiver is taken from --nnms, then $NAGTRAP_NNMS, then the first
    line of /etc/nagtrap.conf of the form

        NNMS 192.0.2.5

Transports:
    The first of these that is present is used, and only that one:

    1. pysnmp, in-process, UDP port 162, community "public"
    2. the vendor trap binary /opt/OV/bin/snmpnotify, fed one
       "<oid> string <value>" line per object on standard input
    3. net-snmp snmptrap, looked up in /usr/local/net-snmp/bin, then the
       usual path for this OS, then /usr/bin, /usr/local/bin, /usr/sbin,
       /opt/local/bin and /sw/bin

    Objects are emitted in ascending order of their OIDs read as a single
    number with the dots removed.

Settings:
    Any TrapSettings field can be set in the YAML settings file or with a
    NAGTRAP_<FIELD> environment variable, for example
    NAGTRAP_USE_NATIVE=false or NAGTRAP_LOG_FILE=/var/log/nagtrap.log.

Exit status:
    0 on success, 1 on a fatal error, 2 on a usage error.

Example:
    nagtrap -s critical -n "Generic Service" -o "Disk full|used=99%" -d 192.0.2.5
"""
from __future__ import annotations

import argparse
import os
import platform
import sys
from importlib import metadata
from typing import Iterable, NoReturn, TextIO

from nagtrap import __version__
from nagtrap.app_config import TrapSettings, load_settings
from nagtrap.app_logger import AppLogger
from nagtrap.errors import NagtrapError, UsageError, ValidationError
from nagtrap.event import State, TrapEvent
from nagtrap.sender import TrapSender
from nagtrap.transports import default_transports


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="nagtrap",
        add_help=False,
        description="Send one passive service result to a Nagios trap receiver",
        epilog='Example: %(prog)s -s critical -n "Generic Service" -o "Something bad happened" -d 192.0.2.5',
    )
    parser.add_argument("-s", "--state", help=f"service state: {', '.join(State.names())}")
    parser.add_argument("-n", "--service", help="service description")
    parser.add_argument("-o", "--output", help="check output; performance data after '|' is dropped")
    parser.add_argument("-d", "--nnms", dest="destination", help="trap receiver host")
    parser.add_argument("-H", "--hostname", help="FQDN reported as the origin host")
    parser.add_argument("--settings", help="YAML settings file")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase logging (repeatable)")
    parser.add_argument("-h", "--help", action="store_true", help="show this help and exit")
    parser.add_argument("--man", action="store_true", help="show the full documentation and exit")
    parser.add_argument("-V", "--version", action="store_true", help="show version and environment and exit")
    return parser


def _package_version(name: str) -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "not installed"


def describe_environment(settings: TrapSettings, stream: TextIO) -> None:
    """Print version and the facts that decide where and how a trap would go."""
    print(f"nagtrap {__version__}", file=stream)
    print(f"python {platform.python_version()} on {sys.platform} ({platform.platform()})", file=stream)
    print(f"pysnmp {_package_version('pysnmp')}, dynaconf {_package_version('dynaconf')}", file=stream)
    print(f"NNMS config file: {settings.config_path}", file=stream)
    for name in (settings.destination_env, settings.hostname_env):
        print(f"${name}: {os.environ.get(name, '(unset)')}", file=stream)
    for transport in default_transports(settings):
        status = "available" if transport.is_available() else "not available"
        print(f"transport {transport.name}: {status}", file=stream)


def _usage_failure(parser: argparse.ArgumentParser, message: str) -> int:
    print(f"{parser.prog}: {message}", file=sys.stderr)
    parser.print_usage(sys.stderr)
    return 2


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    logger = AppLogger.get(__name__)
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
        if args.help:
            parser.print_help()
            return 0
        if args.man:
            print(__doc__)
            return 0
        if args.version:
            describe_environment(load_settings(args.settings), sys.stdout)
            return 0
        missing = [f"--{name}" for name in ("state", "service", "output") if not getattr(args, name)]
        if missing:
            raise UsageError(f"missing required option(s): {', '.join(missing)}")

        settings = load_settings(args.settings, destination=args.destination, hostname=args.hostname)
        AppLogger.configure(settings, verbosity=args.verbose)
        event = TrapEvent.create(args.state, args.service, args.output)
        transport = TrapSender(settings).send(event)
        logger.debug("Delivered via %s", transport.name)
        return 0
    except (UsageError, ValidationError) as exc:
        return _usage_failure(parser, str(exc))
    except NagtrapError as exc:
        logger.error("Trap not sent: %s", exc)
        logger.debug("Fatal error", exc_info=True)
        print(f"{parser.prog}: fatal: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
