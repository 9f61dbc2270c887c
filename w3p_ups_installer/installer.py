from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .inspector import InstalledState
from .lib.env import Layout
from .lib.hostinfo import add_user_to_group
from .lib.systemd import Supervisor
from .pipeline import InstallCtx, StepReport, run_pipeline
from .resolver import ReleaseBundle
from .steps import (
    EnsureConfigDirStep,
    InstallBinaryStep,
    InstallConfigStep,
    InstallShutdownScriptStep,
    InstallUnitStep,
    ReloadSupervisorStep,
)

logger = logging.getLogger(__name__)

SERIAL_GROUP = "dialout"


def build_steps():
    return [
        InstallBinaryStep(),
        EnsureConfigDirStep(),
        InstallConfigStep(),
        InstallShutdownScriptStep(),
        InstallUnitStep(),
        ReloadSupervisorStep(),
    ]


@dataclass(frozen=True)
class InstallResult:
    version: str
    upgrade: bool
    reports: List[StepReport]

    def action(self, step_id: str) -> Optional[str]:
        for r in self.reports:
            if r.step_id == step_id:
                return r.action
        return None


def apply(
    bundle: ReleaseBundle,
    state: InstalledState,
    layout: Layout,
    supervisor: Supervisor,
    *,
    dry_run: bool = False,
) -> InstallResult:
    """Bring files and unit registration to the packaged version.

    Raises CopyFailed/ActivationFailed from the first failing step.
    """

    ctx = InstallCtx(bundle=bundle, state=state, layout=layout, supervisor=supervisor, dry_run=dry_run)
    result = run_pipeline(ctx=ctx, steps=build_steps())
    return InstallResult(version=bundle.version, upgrade=state.is_installed, reports=result.reports)


def grant_serial_access(user: Optional[str], *, dry_run: bool = False) -> bool:
    """Let the invoking (sudo) user read the UPS serial port."""

    if not user:
        return False
    logger.info("Adding user '%s' to %s group for serial port access...", user, SERIAL_GROUP)
    return add_user_to_group(user, SERIAL_GROUP, dry_run=dry_run)
