from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .activator import Outcome, ServiceActivator
from .lib.env import Layout
from .lib.files import remove_file

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    outcomes: List[Outcome] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    preserved: List[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)


def _remove(path: Path, result: UninstallResult, *, dry_run: bool) -> None:
    try:
        if remove_file(path, dry_run=dry_run):
            result.removed.append(path)
            result.outcomes.append(Outcome(action=f"remove {path}"))
        else:
            result.outcomes.append(Outcome(action=f"remove {path}", changed=False))
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
        result.outcomes.append(Outcome(action=f"remove {path}", ok=False, changed=False, error=str(e)))


def remove(layout: Layout, activator: ServiceActivator, *, dry_run: bool = False) -> UninstallResult:
    """Reverse install + activation, keeping the operator's configuration.

    Never raises for host state: a service that is not running, a unit that
    was never registered or files that are already gone are all success.
    """

    result = UninstallResult()
    result.outcomes.append(activator.stop())
    result.outcomes.append(activator.disable())

    logger.info("Removing files...")
    _remove(layout.unit_path, result, dry_run=dry_run)
    _remove(layout.binary_path, result, dry_run=dry_run)

    logger.info("Reloading systemd...")
    reload = activator.reload()
    if reload.error:
        logger.warning("systemd daemon-reload failed: %s", reload.error)
    result.outcomes.append(reload)

    if layout.config_dir_path.exists():
        result.preserved.append(layout.config_dir_path)
    return result
