from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Optional

from dynaconf import Dynaconf

from nagtrap.errors import ConfigurationError

DEFAULT_SETTINGS_FILE = '/etc/nagtrap/settings.yaml'
DEFAULT_NNMS_CONFIG = '/etc/nagtrap.conf'
ENVVAR_PREFIX = 'NAGTRAP'

# Per-invocation overrides, never taken from the settings file.
_RUNTIME_FIELDS = ('destination', 'hostname')


def _default_snmptrap_os_paths() -> dict[str, str]:
    return {
        'linux': '/usr/bin/snmptrap',
        'darwin': '/usr/bin/snmptrap',
        'sunos5': '/usr/sfw/bin/snmptrap',
        'aix': '/opt/freeware/bin/snmptrap',
        'hp-ux11': '/opt/OV/bin/snmptrap',
    }


@dataclass(frozen=True)
class TrapSettings:
    """Everything a single trap invocation needs to know, resolved once."""
    destination: Optional[str] = None
    hostname: Optional[str] = None
    config_path: str = DEFAULT_NNMS_CONFIG
    config_keyword: str = 'NNMS'
    destination_env: str = 'NAGTRAP_NNMS'
    hostname_env: str = 'NAGTRAP_FQDN'
    community: str = 'public'
    port: int = 162
    timeout: int = 10
    use_native: bool = True
    vendor_binary: str = '/opt/OV/bin/snmpnotify'
    snmptrap_custom_path: str = '/usr/local/net-snmp/bin/snmptrap'
    snmptrap_os_paths: Mapping[str, str] = field(default_factory=_default_snmptrap_os_paths)
    snmptrap_search_dirs: tuple[str, ...] = ('/usr/bin', '/usr/local/bin', '/usr/sbin', '/opt/local/bin', '/sw/bin')
    service_group: str = ''
    log_level: str = 'WARNING'
    log_file: Optional[str] = None

    def platform_setting(self, key: str, default: object = None, platform_key: Optional[str] = None) -> object:
        """Look up a per-platform value from a mapping setting, keyed by ``sys.platform``."""
        platform_key = platform_key or sys.platform
        value = getattr(self, key, {})
        if isinstance(value, Mapping):
            return value.get(platform_key, default)
        return default

    def with_overrides(self, **overrides: Any) -> 'TrapSettings':
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _split_dirs(value: str) -> tuple[str, ...]:
    """Split a PATH-style or comma separated directory list."""
    parts = value.replace(os.pathsep, ',').split(',')
    return tuple(part.strip() for part in parts if part.strip())


def _coerce(name: str, value: Any) -> Any:
    if name == 'snmptrap_search_dirs':
        if isinstance(value, str):
            return _split_dirs(value)
        if not isinstance(value, (list, tuple)):
            raise ConfigurationError(f"{name} must be a list of directories, got {value!r}")
        return tuple(str(item) for item in value)
    if name == 'snmptrap_os_paths':
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                f"{name} must be a mapping of platform to path, e.g. {{linux = \"/usr/bin/snmptrap\"}}, got {value!r}"
            )
        return {str(k).lower(): str(v) for k, v in value.items()}
    if name in ('port', 'timeout'):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
    if name == 'use_native' and isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return value


def load_settings(settings_file: Optional[str] = None, **overrides: Any) -> TrapSettings:
    """Build TrapSettings from an optional YAML file and NAGTRAP_* environment variables.

    Args:
        settings_file: Explicit settings file; defaults to DEFAULT_SETTINGS_FILE when it exists
        overrides: Field values that take precedence over anything loaded, e.g. destination

    Raises:
        ConfigurationError: If an explicit settings file does not exist
    """
    if settings_file is not None:
        if not os.path.exists(settings_file):
            raise ConfigurationError(f"Settings file {settings_file} not found")
        settings_files = [settings_file]
    else:
        settings_files = [DEFAULT_SETTINGS_FILE] if os.path.exists(DEFAULT_SETTINGS_FILE) else []

    raw = Dynaconf(settings_files=settings_files, envvar_prefix=ENVVAR_PREFIX, environments=False)
    values: dict[str, Any] = {}
    for f in fields(TrapSettings):
        if f.name in _RUNTIME_FIELDS:
            continue
        value = raw.get(f.name)
        if value is not None:
            values[f.name] = _coerce(f.name, value)
    return TrapSettings(**values).with_overrides(**overrides)
