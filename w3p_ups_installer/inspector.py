from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .lib.env import Layout
from .lib.systemd import Supervisor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstalledState:
    """Snapshot of the host taken before any mutation in this run."""

    binary_present: bool = False
    config_present: bool = False
    # Approximation: an existing file at the config path belongs to the operator.
    config_user_modified: bool = False
    shutdown_script_present: bool = False
    unit_registered: bool = False
    service_active: bool = False

    @property
    def is_installed(self) -> bool:
        return self.binary_present or self.unit_registered

    def describe(self) -> str:
        return "upgrade" if self.is_installed else "fresh install"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def inspect(layout: Layout, supervisor: Supervisor) -> InstalledState:
    config_present = layout.config_path.is_file()
    try:
        active = supervisor.is_active(layout.unit_name)
    except Exception as e:
        logger.debug("Service status query failed, assuming inactive: %s", e)
        active = False

    state = InstalledState(
        binary_present=layout.binary_path.is_file(),
        config_present=config_present,
        config_user_modified=config_present,
        shutdown_script_present=layout.shutdown_script_path.is_file(),
        unit_registered=layout.unit_path.is_file(),
        service_active=active,
    )
    logger.debug("Installed state: %s", state.as_dict())
    return state
