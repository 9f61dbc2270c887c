from __future__ import annotations

import logging

from ..errors import CopyFailed
from ..lib.files import install_file
from ..pipeline import InstallCtx, StepReport

logger = logging.getLogger(__name__)


class InstallBinaryStep:
    step_id = "10_install_binary"

    def run(self, ctx: InstallCtx) -> StepReport:
        dst = ctx.layout.binary_path
        logger.info("Installing binary to %s...", dst.parent)
        # Binaries are never operator-owned: always replaced so upgrades take effect.
        try:
            action = install_file(ctx.bundle.binary, dst, 0o755, dry_run=ctx.dry_run)
        except OSError as e:
            raise CopyFailed(f"Could not install binary to {dst}: {e}") from e
        return StepReport(step_id=self.step_id, action=action, path=dst)
