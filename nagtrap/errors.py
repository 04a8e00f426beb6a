"""Exception hierarchy for nagtrap.

Every error is terminal for the invocation; the CLI turns them into a
message on stderr and a non-zero exit status.
"""
from typing import Optional


class NagtrapError(Exception):
    """Base class for all nagtrap errors."""


class UsageError(NagtrapError):
    """Raised when required command-line input is missing or malformed."""


class ValidationError(NagtrapError):
    """Raised when an event field is missing or the state is not recognised."""


class ConfigurationError(NagtrapError):
    """Raised when no destination can be resolved or a config file is unusable."""


class HostResolutionError(NagtrapError):
    """Raised when the fully-qualified name of this host cannot be determined."""


class TransportUnavailableError(NagtrapError):
    """Raised when none of the trap transports is present on this host."""


class TransportSendError(NagtrapError):
    """Raised when the selected transport fails to deliver the trap."""
    def __init__(self, message: str, output: Optional[str] = None, command: Optional[str] = None) -> None:
        super().__init__(message)
        self.output = output
        self.command = command
