"""
TrapSender: resolves where the trap goes and who it comes from, then hands
the varbinds to the first available transport.
"""
import logging
import time
from typing import Callable, Optional, Sequence

from nagtrap.app_config import TrapSettings
from nagtrap.event import TrapEvent
from nagtrap.oids import build_varbinds
from nagtrap.resolver import resolve_destination, resolve_hostname
from nagtrap.transports import TrapTransport, default_transports, select_transport


def host_uptime() -> int:
    """Monotonic clock in hundredths of a second; on Linux this counts from boot."""
    return int(time.monotonic() * 100)


class TrapSender:

    def __init__(
        self,
        settings: Optional[TrapSettings] = None,
        transports: Optional[Sequence[TrapTransport]] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time,
        uptime: Callable[[], int] = host_uptime,
    ) -> None:
        self.settings = settings or TrapSettings()
        self.transports = list(transports) if transports is not None else default_transports(self.settings)
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.uptime = uptime

    def send(self, event: TrapEvent) -> TrapTransport:
        """Send ``event`` as a single trap.

        Returns:
            The transport that delivered it

        Raises:
            ConfigurationError: If no destination is configured
            HostResolutionError: If the local FQDN cannot be determined
            TransportUnavailableError: If no transport is installed
            TransportSendError: If the chosen transport fails; no other transport is tried
        """
        destination = resolve_destination(event.destination or self.settings.destination, self.settings)
        hostname = resolve_hostname(self.settings.hostname, self.settings)
        varbinds = build_varbinds(
            event,
            hostname=hostname,
            uptime=self.uptime(),
            timestamp=int(self.clock()),
            service_group=self.settings.service_group,
        )
        transport = select_transport(self.transports)
        self.logger.info(
            "Sending %s trap for service '%s' on %s to %s via %s",
            event.state.name, event.service, hostname, destination, transport.name,
        )
        transport.send(varbinds, destination)
        return transport


def send_trap(
    state: str,
    service: str,
    output: str,
    destination: Optional[str] = None,
    hostname: Optional[str] = None,
    settings: Optional[TrapSettings] = None,
) -> TrapTransport:
    """Validate the raw fields and send one trap with the default transports."""
    settings = (settings or TrapSettings()).with_overrides(hostname=hostname)
    event = TrapEvent.create(state, service, output, destination=destination)
    return TrapSender(settings).send(event)
