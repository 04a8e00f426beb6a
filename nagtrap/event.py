"""Trap event model and input validation."""
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, cast

from nagtrap.errors import ValidationError

_PERFDATA_RE = re.compile(r'\s*\|.*\Z', re.DOTALL)


class State(IntEnum):
    """Nagios service states and their numeric codes."""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @classmethod
    def names(cls) -> list[str]:
        return [member.name.lower() for member in cls]

    @classmethod
    def parse(cls, value: Optional[str]) -> 'State':
        """Return the state named by ``value``, ignoring case.

        Raises:
            ValidationError: If ``value`` is not one of ok, warning, critical, unknown
        """
        if value is None:
            raise ValidationError(f"Missing state; expected one of: {', '.join(cls.names())}")
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValidationError(
                f"Unrecognised state '{value}'; expected one of: {', '.join(cls.names())}"
            ) from None


def strip_perfdata(output: str) -> str:
    """Remove a trailing performance-data suffix ("|..." and the whitespace before it)."""
    return _PERFDATA_RE.sub('', output, count=1)


@dataclass(frozen=True)
class TrapEvent:
    state: State
    service: str
    output: str
    destination: Optional[str] = None

    @property
    def code(self) -> int:
        return int(self.state)

    @classmethod
    def create(
        cls,
        state: Optional[str],
        service: Optional[str],
        output: Optional[str],
        destination: Optional[str] = None,
    ) -> 'TrapEvent':
        """Validate raw strings and build an event.

        Service and output are passed through as free text; only the
        performance data is removed from the output.

        Raises:
            ValidationError: If a required field is missing or the state is unknown
        """
        missing = [name for name, value in (('state', state), ('service', service), ('output', output)) if not value]
        if missing:
            raise ValidationError(
                f"Missing required field(s): {', '.join(missing)}; "
                f"state must be one of: {', '.join(State.names())}"
            )
        return cls(
            state=State.parse(state),
            service=cast(str, service),
            output=strip_perfdata(cast(str, output)),
            destination=destination or None,
        )
