from __future__ import annotations

import logging

from ..errors import ActivationFailed
from ..lib.command import CommandError
from ..pipeline import InstallCtx, StepReport

logger = logging.getLogger(__name__)


class ReloadSupervisorStep:
    step_id = "60_reload_supervisor"

    def run(self, ctx: InstallCtx) -> StepReport:
        logger.info("Reloading systemd daemon...")
        try:
            ctx.supervisor.daemon_reload()
        except CommandError as e:
            raise ActivationFailed(f"systemd daemon-reload failed: {e}") from e
        return StepReport(step_id=self.step_id, action="reloaded")
