"""Tests for event validation and performance-data stripping."""
from typing import Optional

import pytest

from nagtrap.errors import ValidationError
from nagtrap.event import State, TrapEvent, strip_perfdata


@pytest.mark.parametrize("raw, code", [
    ("ok", 0), ("OK", 0), ("Ok", 0),
    ("warning", 1), ("WARNING", 1),
    ("critical", 2), ("CriTical", 2),
    ("unknown", 3), ("UNKNOWN", 3),
])
def test_state_codes(raw: str, code: int) -> None:
    assert int(State.parse(raw)) == code
    assert TrapEvent.create(raw, "svc", "out").code == code


@pytest.mark.parametrize("raw", ["up", "down", "", "okay", "2", " ok"])
def test_unrecognised_state_is_rejected(raw: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        State.parse(raw)
    for name in ("ok", "warning", "critical", "unknown"):
        assert name in str(excinfo.value)


def test_missing_state_is_rejected() -> None:
    with pytest.raises(ValidationError):
        State.parse(None)


@pytest.mark.parametrize("state, service, output, missing", [
    (None, "svc", "out", "state"),
    ("ok", None, "out", "service"),
    ("ok", "svc", None, "output"),
    ("ok", "", "", "service, output"),
])
def test_create_requires_fields(state: Optional[str], service: Optional[str], output: Optional[str], missing: str) -> None:
    with pytest.raises(ValidationError, match=f"Missing required field\\(s\\): {missing}"):
        TrapEvent.create(state, service, output)


@pytest.mark.parametrize("output, expected", [
    ("Disk full|size=90%", "Disk full"),
    ("Disk full |size=90%", "Disk full"),
    ("Disk full \t| size=90% | more", "Disk full"),
    ("|only perfdata", ""),
    ("line one\nline two|a=1\nb=2", "line one\nline two"),
    ("No perfdata here", "No perfdata here"),
    ("  keeps its whitespace  ", "  keeps its whitespace  "),
])
def test_strip_perfdata(output: str, expected: str) -> None:
    assert strip_perfdata(output) == expected


@pytest.mark.parametrize("output", ["Disk full|size=90%", "a | b | c", "plain", " x |"])
def test_strip_perfdata_is_idempotent(output: str) -> None:
    once = strip_perfdata(output)
    assert strip_perfdata(once) == once


def test_create_strips_output_and_keeps_service_verbatim() -> None:
    event = TrapEvent.create("WARNING", "Disk 'C:' | usage", "Low space|free=1%")
    assert event.state is State.WARNING
    assert event.service == "Disk 'C:' | usage"
    assert event.output == "Low space"
    assert event.destination is None


def test_create_keeps_destination() -> None:
    assert TrapEvent.create("ok", "svc", "out", destination="192.0.2.5").destination == "192.0.2.5"
    assert TrapEvent.create("ok", "svc", "out", destination="").destination is None
