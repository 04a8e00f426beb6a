"""Destination and origin-host resolution.

Both resolvers follow the same precedence: an explicit value wins, then
an environment variable, then a local lookup (the NNMS config file for the
destination, the resolver library for the host name).
"""
import logging
import os
import socket
from typing import Callable, Mapping, Optional

from nagtrap.app_config import TrapSettings
from nagtrap.errors import ConfigurationError, HostResolutionError

log = logging.getLogger(__name__)


def read_config_destination(path: str, keyword: str = 'NNMS') -> Optional[str]:
    """Return the host from the first ``<keyword> <host>`` line of ``path``, or None.

    Raises:
        ConfigurationError: If the file cannot be opened, read or closed
    """
    try:
        with open(path, 'r') as fh:
            for line in fh:
                tokens = line.split()
                if len(tokens) == 2 and tokens[0] == keyword:
                    return tokens[1].rstrip()
    except OSError as exc:
        raise ConfigurationError(f"Unable to read NNMS config file {path}: {exc}") from exc
    return None


def resolve_destination(
    explicit: Optional[str],
    settings: TrapSettings,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Return the trap receiver address.

    Args:
        explicit: Destination given on the command line or by the caller
        settings: Supplies the environment variable name and config file path
        environ: Environment to consult; defaults to os.environ

    Raises:
        ConfigurationError: If no source yields a destination
    """
    if explicit:
        log.debug("Using explicit destination %s", explicit)
        return explicit

    environ = os.environ if environ is None else environ
    from_env = environ.get(settings.destination_env)
    if from_env:
        log.debug("Using destination %s from $%s", from_env, settings.destination_env)
        return from_env

    problem = None
    try:
        from_file = read_config_destination(settings.config_path, settings.config_keyword)
    except ConfigurationError as exc:
        from_file = None
        problem = str(exc)
    if from_file:
        log.debug("Using destination %s from %s", from_file, settings.config_path)
        return from_file

    message = (
        "No trap destination configured. Pass --nnms, set $%s, or add a '%s <host>' line to %s"
        % (settings.destination_env, settings.config_keyword, settings.config_path)
    )
    if problem:
        message += f" ({problem})"
    raise ConfigurationError(message)


def resolve_hostname(
    explicit: Optional[str],
    settings: TrapSettings,
    environ: Optional[Mapping[str, str]] = None,
    getfqdn: Callable[[], str] = socket.getfqdn,
    gethostname: Callable[[], str] = socket.gethostname,
) -> str:
    """Return the FQDN reported as the origin of the trap.

    Raises:
        HostResolutionError: If the OS lookup yields nothing
    """
    if explicit:
        return explicit

    environ = os.environ if environ is None else environ
    from_env = environ.get(settings.hostname_env)
    if from_env:
        log.debug("Using hostname %s from $%s", from_env, settings.hostname_env)
        return from_env

    try:
        fqdn = getfqdn()
    except OSError as exc:
        raise HostResolutionError(f"Unable to determine FQDN for host {gethostname()}: {exc}") from exc
    if not fqdn:
        raise HostResolutionError(
            f"Unable to determine FQDN for host {gethostname()}; pass --hostname or set ${settings.hostname_env}"
        )
    return fqdn
