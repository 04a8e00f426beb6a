"""Tests for OID ordering and varbind construction."""
import warnings

import pytest

from nagtrap import oids
from nagtrap.event import TrapEvent
from nagtrap.oids import (
    SNMP_TRAP_OID,
    SVC_EVENT_TRAP_OID,
    SYS_UPTIME_OID,
    VarBind,
    build_varbinds,
    compare_oids,
    parameter_varbinds,
    sort_oids,
)

ENTRY = '1.3.6.1.4.1.20006.1.3.1'

# Parameter OIDs in the order compare_oids puts them.
EXPECTED_PARAMETER_ORDER = [
    ENTRY + '.2', ENTRY + '.4', ENTRY + '.6', ENTRY + '.7', ENTRY + '.8',
    ENTRY + '.9', ENTRY + '.10', ENTRY + '.11', ENTRY + '.12', ENTRY + '.17',
]


def _per_arc(oid: str) -> tuple[int, ...]:
    return tuple(int(arc) for arc in oid.split('.'))


def test_compare_oids() -> None:
    assert compare_oids(ENTRY + '.9', ENTRY + '.17') == -1
    assert compare_oids(ENTRY + '.17', ENTRY + '.9') == 1
    assert compare_oids(ENTRY + '.9', ENTRY + '.9') == 0


def test_compare_oids_ignores_dot_positions() -> None:
    # Same digits, different arcs: equal once the dots are gone.
    assert compare_oids('1.23', '12.3') == 0


def test_sort_parameter_oids() -> None:
    shuffled = list(reversed(EXPECTED_PARAMETER_ORDER))
    shuffled[2], shuffled[7] = shuffled[7], shuffled[2]
    assert sort_oids(shuffled) == EXPECTED_PARAMETER_ORDER


def test_sort_uses_concatenated_digits_not_arcs() -> None:
    warnings.warn(
        "OIDs are ordered by their concatenated digits, not per arc; "
        "this differs from SNMP lexicographic order and is kept for receiver compatibility",
        UserWarning,
    )
    assert sort_oids(['1.10', '2.1']) == ['2.1', '1.10']
    assert sorted(['1.10', '2.1'], key=_per_arc) == ['1.10', '2.1']

    # The trap identity OID is shorter, so it sorts before every entry column.
    assert sort_oids([ENTRY + '.17', SVC_EVENT_TRAP_OID]) == [SVC_EVENT_TRAP_OID, ENTRY + '.17']
    assert sorted([ENTRY + '.17', SVC_EVENT_TRAP_OID], key=_per_arc) == [ENTRY + '.17', SVC_EVENT_TRAP_OID]


def test_sort_full_varbind_set(event: TrapEvent) -> None:
    all_oids = [vb.oid for vb in build_varbinds(event, 'host.example.com', 0, 0)]
    expected = [SYS_UPTIME_OID, SNMP_TRAP_OID] + EXPECTED_PARAMETER_ORDER
    assert sort_oids(reversed(all_oids)) == expected
    # Per-arc ordering would put snmpTrapOID.0 (1.3.6.1.6...) after the enterprise columns.
    assert sorted(all_oids, key=_per_arc)[-1] == SNMP_TRAP_OID


def test_build_varbinds(event: TrapEvent) -> None:
    varbinds = build_varbinds(event, 'host.example.com', uptime=4200, timestamp=1700000000, service_group='web')
    assert varbinds == [
        VarBind(SYS_UPTIME_OID, oids.TIMETICKS, 4200),
        VarBind(SNMP_TRAP_OID, oids.OBJECT_IDENTIFIER, '1.3.6.1.4.1.20006.1.7'),
        VarBind(ENTRY + '.2', oids.OCTET_STRING, 'host.example.com'),
        VarBind(ENTRY + '.4', oids.INTEGER, 0),
        VarBind(ENTRY + '.6', oids.OCTET_STRING, 'Generic Service'),
        VarBind(ENTRY + '.7', oids.INTEGER, 2),
        VarBind(ENTRY + '.8', oids.INTEGER, 1),
        VarBind(ENTRY + '.9', oids.INTEGER, 0),
        VarBind(ENTRY + '.10', oids.OCTET_STRING, 'web'),
        VarBind(ENTRY + '.11', oids.INTEGER, 1700000000),
        VarBind(ENTRY + '.12', oids.INTEGER, 1700000000),
        VarBind(ENTRY + '.17', oids.OCTET_STRING, 'Something bad happened'),
    ]


def test_parameter_varbinds_drop_header(event: TrapEvent) -> None:
    params = parameter_varbinds(build_varbinds(event, 'h', 1, 2))
    assert [vb.oid for vb in params] == EXPECTED_PARAMETER_ORDER
    assert [vb.text for vb in params][:3] == ['h', '0', 'Generic Service']


@pytest.mark.parametrize("value, text", [(0, '0'), ('x y', 'x y'), ('', '')])
def test_varbind_text(value: object, text: str) -> None:
    assert VarBind('1.2', oids.OCTET_STRING, value).text == text
