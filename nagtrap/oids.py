"""NAGIOS-NOTIFY-MIB object identifiers and varbind construction.

OIDs are kept as dotted-decimal strings. They are ordered with
``compare_oids``, which deletes the dots and compares the remaining digits
as one integer. That is not the per-arc ordering SNMP tools use: a shorter
OID always sorts before a longer one with more digits, so
``1.3.6.1.4.1.20006.1.7`` sorts before ``1.3.6.1.4.1.20006.1.3.1.2``.
Receivers built against this ordering depend on it, so it is kept as is.
"""
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Iterable, List

from nagtrap.event import TrapEvent

SYS_UPTIME_OID = '1.3.6.1.2.1.1.3.0'         # SNMPv2-MIB::sysUpTime.0
SNMP_TRAP_OID = '1.3.6.1.6.3.1.1.4.1.0'      # SNMPv2-MIB::snmpTrapOID.0

NAGIOS_ENTERPRISE_OID = '1.3.6.1.4.1.20006'
SVC_EVENT_TRAP_OID = NAGIOS_ENTERPRISE_OID + '.1.7'        # nSvcEvent
_SVC_EVENT_ENTRY = NAGIOS_ENTERPRISE_OID + '.1.3.1'        # nSvcEventEntry

SVC_HOSTNAME_OID = _SVC_EVENT_ENTRY + '.2'
SVC_HOST_STATE_OID = _SVC_EVENT_ENTRY + '.4'
SVC_DESC_OID = _SVC_EVENT_ENTRY + '.6'
SVC_STATE_OID = _SVC_EVENT_ENTRY + '.7'
SVC_ATTEMPT_OID = _SVC_EVENT_ENTRY + '.8'
SVC_DURATION_OID = _SVC_EVENT_ENTRY + '.9'
SVC_GROUP_OID = _SVC_EVENT_ENTRY + '.10'
SVC_LAST_CHECK_OID = _SVC_EVENT_ENTRY + '.11'
SVC_LAST_CHANGE_OID = _SVC_EVENT_ENTRY + '.12'
SVC_OUTPUT_OID = _SVC_EVENT_ENTRY + '.17'

HOST_STATE_UP = 0
SERVICE_ATTEMPT = 1
SERVICE_DURATION = 0

TIMETICKS = 'TimeTicks'
OBJECT_IDENTIFIER = 'ObjectIdentifier'
OCTET_STRING = 'OctetString'
INTEGER = 'Integer'

_HEADER_OIDS = (SYS_UPTIME_OID, SNMP_TRAP_OID)


@dataclass(frozen=True)
class VarBind:
    oid: str
    type: str
    value: Any

    @property
    def text(self) -> str:
        return str(self.value)


def compare_oids(a: str, b: str) -> int:
    """Compare two dotted OIDs as the integers formed by their concatenated digits."""
    left = int(a.replace('.', ''))
    right = int(b.replace('.', ''))
    return (left > right) - (left < right)


oid_sort_key = cmp_to_key(compare_oids)


def sort_oids(oids: Iterable[str]) -> List[str]:
    return sorted(oids, key=oid_sort_key)


def sort_varbinds(varbinds: Iterable[VarBind]) -> List[VarBind]:
    return sorted(varbinds, key=lambda vb: oid_sort_key(vb.oid))


def parameter_varbinds(varbinds: Iterable[VarBind]) -> List[VarBind]:
    """Drop the sysUpTime/snmpTrapOID header and order the rest with compare_oids."""
    return sort_varbinds(vb for vb in varbinds if vb.oid not in _HEADER_OIDS)


def build_varbinds(
    event: TrapEvent,
    hostname: str,
    uptime: int,
    timestamp: int,
    service_group: str = '',
) -> List[VarBind]:
    """Describe ``event`` as a service event trap, in emission order.

    Args:
        event: The validated event
        hostname: FQDN of the sending host
        uptime: sysUpTime in hundredths of a second
        timestamp: Epoch seconds used for last-check and last-change
        service_group: Value for the service group name object
    """
    return [
        VarBind(SYS_UPTIME_OID, TIMETICKS, uptime),
        VarBind(SNMP_TRAP_OID, OBJECT_IDENTIFIER, SVC_EVENT_TRAP_OID),
        VarBind(SVC_HOSTNAME_OID, OCTET_STRING, hostname),
        VarBind(SVC_HOST_STATE_OID, INTEGER, HOST_STATE_UP),
        VarBind(SVC_DESC_OID, OCTET_STRING, event.service),
        VarBind(SVC_STATE_OID, INTEGER, event.code),
        VarBind(SVC_ATTEMPT_OID, INTEGER, SERVICE_ATTEMPT),
        VarBind(SVC_DURATION_OID, INTEGER, SERVICE_DURATION),
        VarBind(SVC_GROUP_OID, OCTET_STRING, service_group),
        VarBind(SVC_LAST_CHECK_OID, INTEGER, timestamp),
        VarBind(SVC_LAST_CHANGE_OID, INTEGER, timestamp),
        VarBind(SVC_OUTPUT_OID, OCTET_STRING, event.output),
    ]
