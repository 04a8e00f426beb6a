"""Trap transports and the selection between them.

Three providers are tried in a fixed order: pysnmp in-process, the vendor
trap binary, then net-snmp's ``snmptrap``. The first one present on the
host is used for the whole invocation; if it then fails to send, the
error is final and the remaining providers are not tried.

Note on pysnmp varbinds:
    send_notification() is given raw (OID tuple, value) pairs as in the
    pysnmp v7 documentation, starting with sysUpTime.0 and snmpTrapOID.0,
    rather than a MIB-resolved NotificationType. NAGIOS-NOTIFY-MIB does not
    need to be compiled or loaded for this.
"""
from __future__ import annotations

import asyncio
import importlib
import logging
import os
import shlex
import subprocess
import sys
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any, List, Optional, Sequence, TextIO, Tuple, cast

from nagtrap.app_config import TrapSettings
from nagtrap.errors import TransportSendError, TransportUnavailableError
from nagtrap.oids import (
    INTEGER,
    OBJECT_IDENTIFIER,
    OCTET_STRING,
    SNMP_TRAP_OID,
    SVC_EVENT_TRAP_OID,
    TIMETICKS,
    VarBind,
    parameter_varbinds,
    sort_varbinds,
)

log = logging.getLogger(__name__)

SNMP_VERSION = '2c'
VENDOR_GENERIC_TRAP = 6     # enterpriseSpecific
VENDOR_SPECIFIC_TRAP = 7    # nSvcEvent


def is_executable(path: Optional[str]) -> bool:
    if not path:
        return False
    return os.path.isfile(path) and os.access(path, os.X_OK)


def shell_quote(value: str) -> str:
    """Single-quote ``value`` for display the way a POSIX shell would accept it."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


def _oid_tuple(oid: str) -> Tuple[int, ...]:
    return tuple(int(arc) for arc in oid.split('.'))


def _load_pysnmp() -> Tuple[ModuleType, ModuleType]:
    hlapi = importlib.import_module('pysnmp.hlapi.v3arch.asyncio')
    rfc1902 = importlib.import_module('pysnmp.proto.rfc1902')
    return hlapi, rfc1902


class TrapTransport(ABC):
    """One way of getting a trap to the receiver."""
    name: str = 'transport'

    def __init__(self, settings: TrapSettings) -> None:
        self.settings = settings

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if this transport can be used on this host."""

    @abstractmethod
    def send(self, varbinds: Sequence[VarBind], destination: str) -> None:
        """Deliver the trap or raise TransportSendError."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class NativeSnmpTransport(TrapTransport):
    """Sends the trap in-process with pysnmp."""
    name = 'pysnmp'

    def __init__(self, settings: TrapSettings) -> None:
        super().__init__(settings)
        self._hlapi: Optional[ModuleType] = None
        self._rfc1902: Optional[ModuleType] = None

    def is_available(self) -> bool:
        if not self.settings.use_native:
            log.debug("Native SNMP disabled by settings")
            return False
        try:
            self._hlapi, self._rfc1902 = _load_pysnmp()
        except ImportError as exc:
            log.debug("pysnmp cannot be loaded: %s", exc)
            return False
        return True

    def _asn1(self, varbind: VarBind) -> Any:
        rfc1902 = cast(ModuleType, self._rfc1902)
        if varbind.type == TIMETICKS:
            return rfc1902.TimeTicks(int(varbind.value) % 2 ** 32)
        if varbind.type == OBJECT_IDENTIFIER:
            return rfc1902.ObjectIdentifier(_oid_tuple(str(varbind.value)))
        if varbind.type == INTEGER:
            return rfc1902.Integer32(int(varbind.value))
        if varbind.type == OCTET_STRING:
            return rfc1902.OctetString(str(varbind.value))
        raise ValueError(f"Unsupported varbind type {varbind.type!r} for {varbind.oid}")

    async def _notify(self, engine: Any, varbinds: Sequence[VarBind], destination: str) -> Tuple[Any, Any, Any, Any]:
        hlapi = cast(ModuleType, self._hlapi)
        try:
            target = await hlapi.UdpTransportTarget.create(
                (destination, self.settings.port), timeout=self.settings.timeout, retries=0
            )
            return await hlapi.send_notification(
                engine,
                hlapi.CommunityData(self.settings.community, mpModel=1),
                target,
                hlapi.ContextData(),
                'trap',
                *[(_oid_tuple(vb.oid), self._asn1(vb)) for vb in varbinds],
            )
        finally:
            # must run before asyncio.run() closes the loop
            engine.close_dispatcher()

    def send(self, varbinds: Sequence[VarBind], destination: str) -> None:
        if self._hlapi is None and not self.is_available():
            raise TransportSendError("pysnmp is not available")
        engine = cast(ModuleType, self._hlapi).SnmpEngine()
        try:
            error_indication, error_status, error_index, _ = asyncio.run(
                self._notify(engine, varbinds, destination)
            )
        except Exception as exc:
            raise TransportSendError(
                f"SNMP trap to {destination}:{self.settings.port} failed: {exc}", output=str(exc)
            ) from exc

        if error_indication:
            raise TransportSendError(
                f"SNMP trap to {destination}:{self.settings.port} failed: {error_indication}",
                output=str(error_indication),
            )
        if error_status:
            raise TransportSendError(
                f"SNMP trap to {destination}:{self.settings.port} failed: {error_status} at {error_index}",
                output=str(error_status),
            )
        log.info("Trap sent to %s:%d with pysnmp", destination, self.settings.port)


class VendorBinaryTransport(TrapTransport):
    """Feeds the trap to the vendor trap binary on its standard input."""
    name = 'vendor'

    @property
    def binary(self) -> str:
        return self.settings.vendor_binary

    def is_available(self) -> bool:
        return is_executable(self.binary)

    def build_command(self, destination: str) -> List[str]:
        return [self.binary, destination, str(VENDOR_GENERIC_TRAP), str(VENDOR_SPECIFIC_TRAP)]

    def build_lines(self, varbinds: Sequence[VarBind]) -> List[str]:
        identity = VarBind(SNMP_TRAP_OID, OCTET_STRING, SVC_EVENT_TRAP_OID)
        lines = sort_varbinds([identity] + parameter_varbinds(varbinds))
        return [f"{vb.oid} string {vb.text}" for vb in lines]

    def send(self, varbinds: Sequence[VarBind], destination: str) -> None:
        command = self.build_command(destination)
        command_line = shlex.join(command)
        log.debug("Running %s", command_line)
        try:
            proc = subprocess.Popen(command, stdin=subprocess.PIPE, text=True)
        except (OSError, ValueError) as exc:
            raise TransportSendError(
                f"Vendor trap binary failed: {exc}", output=str(exc), command=command_line
            ) from exc
        stdin = cast(TextIO, proc.stdin)
        try:
            for line in self.build_lines(varbinds):
                stdin.write(line + '\n')
            stdin.close()
        except (OSError, ValueError) as exc:
            proc.kill()
            proc.wait()
            raise TransportSendError(
                f"Vendor trap binary failed: {exc}", output=str(exc), command=command_line
            ) from exc
        returncode = proc.wait()
        log.debug("%s exited with status %s", self.binary, returncode)
        log.info("Trap sent to %s with %s", destination, self.binary)


class NetSnmpTransport(TrapTransport):
    """Runs net-snmp's snmptrap command."""
    name = 'snmptrap'
    # binary, -v, version, -c, community, destination, uptime, trap oid
    FIXED_ARGS = 8

    def __init__(self, settings: TrapSettings, platform_key: Optional[str] = None) -> None:
        super().__init__(settings)
        self.platform_key = platform_key or sys.platform
        self.binary: Optional[str] = None

    def candidates(self) -> List[str]:
        paths = [self.settings.snmptrap_custom_path]
        os_path = self.settings.platform_setting('snmptrap_os_paths', platform_key=self.platform_key)
        if isinstance(os_path, str) and os_path:
            paths.append(os_path)
        paths.extend(os.path.join(directory, 'snmptrap') for directory in self.settings.snmptrap_search_dirs)
        return paths

    def locate(self) -> Optional[str]:
        for path in self.candidates():
            if is_executable(path):
                return path
        return None

    def is_available(self) -> bool:
        self.binary = self.locate()
        return self.binary is not None

    def build_command(self, binary: str, varbinds: Sequence[VarBind], destination: str) -> List[str]:
        command = [binary, '-v', SNMP_VERSION, '-c', self.settings.community, destination, '', SVC_EVENT_TRAP_OID]
        for vb in parameter_varbinds(varbinds):
            command.extend([vb.oid, 's', vb.text])
        return command

    @staticmethod
    def format_command(command: Sequence[str]) -> str:
        """Render a command from build_command with each OID and value single-quoted."""
        head = ' '.join(shlex.quote(arg) for arg in command[:NetSnmpTransport.FIXED_ARGS])
        triples = [
            f"{shell_quote(command[i])} {command[i + 1]} {shell_quote(command[i + 2])}"
            for i in range(NetSnmpTransport.FIXED_ARGS, len(command), 3)
        ]
        return ' '.join([head] + triples)

    def send(self, varbinds: Sequence[VarBind], destination: str) -> None:
        binary = self.binary or self.locate()
        if binary is None:
            raise TransportSendError("snmptrap is not available")
        command = self.build_command(binary, varbinds, destination)
        command_line = self.format_command(command)
        log.debug("Running %s", command_line)
        try:
            result = subprocess.run(
                command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
            )
        except OSError as exc:
            raise TransportSendError(
                f"Unable to run {binary}: {exc}\nCommand: {command_line}", output=str(exc), command=command_line
            ) from exc
        output = (result.stdout or '').strip()
        if output:
            raise TransportSendError(
                f"snmptrap reported an error: {output}\nCommand: {command_line}", output=output, command=command_line
            )
        log.info("Trap sent to %s with %s", destination, binary)


def default_transports(settings: TrapSettings) -> List[TrapTransport]:
    return [NativeSnmpTransport(settings), VendorBinaryTransport(settings), NetSnmpTransport(settings)]


def select_transport(transports: Sequence[TrapTransport]) -> TrapTransport:
    """Return the first available transport.

    Raises:
        TransportUnavailableError: If none is available
    """
    for transport in transports:
        if transport.is_available():
            log.info("Using %s transport", transport.name)
            return transport
    raise TransportUnavailableError(
        "No SNMP trap transport found. Verify that the pysnmp Python package is installed, "
        "that the vendor trap binary is executable, or install net-snmp's snmptrap"
    )
