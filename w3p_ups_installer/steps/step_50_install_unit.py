from __future__ import annotations

import logging

from ..errors import CopyFailed
from ..lib.files import install_file
from ..pipeline import InstallCtx, StepReport

logger = logging.getLogger(__name__)


class InstallUnitStep:
    step_id = "50_install_unit"

    def run(self, ctx: InstallCtx) -> StepReport:
        dst = ctx.layout.unit_path
        logger.info("Installing systemd service...")
        # The unit references fixed paths and tracks the packaged version.
        try:
            action = install_file(ctx.bundle.unit_file, dst, 0o644, dry_run=ctx.dry_run)
        except OSError as e:
            raise CopyFailed(f"Could not install service unit {dst}: {e}") from e
        return StepReport(step_id=self.step_id, action=action, path=dst)
