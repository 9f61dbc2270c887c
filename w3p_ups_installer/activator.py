from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import ActivationFailed
from .lib.command import CommandError
from .lib.systemd import Supervisor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of a tolerant operation.

    ``ok`` is True both when the call succeeded and when it failed because
    the desired state already held; ``error`` keeps the original failure
    for diagnostics only.
    """

    action: str
    ok: bool = True
    changed: bool = True
    error: Optional[str] = None


class ServiceActivator:
    def __init__(self, supervisor: Supervisor, unit: str) -> None:
        self.supervisor = supervisor
        self.unit = unit

    def register(self) -> None:
        """Enable the unit so it starts on boot."""
        logger.info("Enabling %s...", self.unit)
        try:
            self.supervisor.enable(self.unit)
        except CommandError as e:
            raise ActivationFailed(f"Could not enable {self.unit}: {e}") from e

    def start(self) -> None:
        logger.info("Starting %s...", self.unit)
        try:
            self.supervisor.start(self.unit)
        except CommandError as e:
            raise ActivationFailed(f"Could not start {self.unit}: {e}") from e

    def is_active(self) -> bool:
        return self.supervisor.is_active(self.unit)

    def _tolerant(self, action: str, fn: Callable[[str], None]) -> Outcome:
        try:
            fn(self.unit)
        except CommandError as e:
            # "not loaded"/"not running" both mean the goal state already holds.
            logger.debug("%s %s failed (tolerated): %s", action, self.unit, e)
            return Outcome(action=action, ok=True, changed=False, error=str(e))
        return Outcome(action=action)

    def stop(self) -> Outcome:
        logger.info("Stopping service...")
        return self._tolerant("stop", self.supervisor.stop)

    def disable(self) -> Outcome:
        logger.info("Disabling service...")
        return self._tolerant("disable", self.supervisor.disable)

    def reload(self) -> Outcome:
        return self._tolerant("daemon-reload", lambda _unit: self.supervisor.daemon_reload())
