from __future__ import annotations

import logging

from ..errors import CopyFailed
from ..lib.files import install_file
from ..pipeline import InstallCtx, StepReport

logger = logging.getLogger(__name__)


class InstallShutdownScriptStep:
    step_id = "40_install_shutdown_script"

    def run(self, ctx: InstallCtx) -> StepReport:
        dst = ctx.layout.shutdown_script_path
        if dst.exists():
            logger.warning("Shutdown script already exists, skipping")
            return StepReport(step_id=self.step_id, action="kept", path=dst)

        logger.info("Installing shutdown script...")
        try:
            install_file(ctx.bundle.shutdown_script, dst, 0o755, dry_run=ctx.dry_run)
        except OSError as e:
            raise CopyFailed(f"Could not install shutdown script {dst}: {e}") from e
        return StepReport(step_id=self.step_id, action="installed", path=dst)
