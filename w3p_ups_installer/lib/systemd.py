from __future__ import annotations

import logging
from typing import Protocol

from .command import run_cmd

logger = logging.getLogger(__name__)


class Supervisor(Protocol):
    """Host service supervisor as seen by the installer."""

    def daemon_reload(self) -> None:
        ...

    def enable(self, unit: str) -> None:
        ...

    def start(self, unit: str) -> None:
        ...

    def stop(self, unit: str) -> None:
        ...

    def disable(self, unit: str) -> None:
        ...

    def is_active(self, unit: str) -> bool:
        ...


class Systemctl:
    """systemd adapter. Mutating calls raise CommandError on failure."""

    def __init__(self, systemctl_bin: str = "systemctl", *, dry_run: bool = False) -> None:
        self.systemctl_bin = systemctl_bin
        self.dry_run = dry_run

    def _run(self, *args: str) -> None:
        run_cmd([self.systemctl_bin, *args], dry_run=self.dry_run)

    def daemon_reload(self) -> None:
        self._run("daemon-reload")

    def enable(self, unit: str) -> None:
        self._run("enable", unit)

    def start(self, unit: str) -> None:
        self._run("start", unit)

    def stop(self, unit: str) -> None:
        self._run("stop", unit)

    def disable(self, unit: str) -> None:
        self._run("disable", unit)

    def is_active(self, unit: str) -> bool:
        # Read-only, so it runs even in dry-run mode.
        r = run_cmd([self.systemctl_bin, "is-active", "--quiet", unit], check=False)
        return r.returncode == 0
