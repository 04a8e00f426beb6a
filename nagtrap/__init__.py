"""Relay a single service result to a Nagios SNMP trap receiver."""

__version__ = '1.0.0'

from nagtrap.app_config import TrapSettings, load_settings
from nagtrap.errors import (
    ConfigurationError,
    HostResolutionError,
    NagtrapError,
    TransportSendError,
    TransportUnavailableError,
    UsageError,
    ValidationError,
)
from nagtrap.event import State, TrapEvent
from nagtrap.sender import TrapSender, send_trap

__all__ = [
    'TrapSettings', 'load_settings', 'State', 'TrapEvent', 'TrapSender', 'send_trap',
    'NagtrapError', 'UsageError', 'ValidationError', 'ConfigurationError',
    'HostResolutionError', 'TransportUnavailableError', 'TransportSendError',
]
