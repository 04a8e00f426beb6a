import os
import stat
from pathlib import Path
from typing import Callable

import pytest

from nagtrap.app_config import TrapSettings
from nagtrap.event import TrapEvent


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's NAGTRAP_* variables out of every test."""
    for name in list(os.environ):
        if name.startswith('NAGTRAP_'):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> TrapSettings:
    """Settings whose files and binaries all live under tmp_path (and do not exist yet)."""
    return TrapSettings(
        config_path=str(tmp_path / 'nagtrap.conf'),
        vendor_binary=str(tmp_path / 'OV' / 'snmpnotify'),
        snmptrap_custom_path=str(tmp_path / 'net-snmp' / 'snmptrap'),
        snmptrap_os_paths={'linux': str(tmp_path / 'os' / 'snmptrap')},
        snmptrap_search_dirs=(str(tmp_path / 'bin'), str(tmp_path / 'sbin')),
    )


@pytest.fixture
def make_executable() -> Callable[[str], str]:
    def _make(path: str) -> str:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as fh:
            fh.write('#!/bin/sh\nexit 0\n')
        os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path
    return _make


@pytest.fixture
def event() -> TrapEvent:
    return TrapEvent.create('critical', 'Generic Service', 'Something bad happened')
