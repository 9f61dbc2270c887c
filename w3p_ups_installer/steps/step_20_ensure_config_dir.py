from __future__ import annotations

import logging

from ..errors import CopyFailed
from ..pipeline import InstallCtx, StepReport

logger = logging.getLogger(__name__)


class EnsureConfigDirStep:
    step_id = "20_ensure_config_dir"

    def run(self, ctx: InstallCtx) -> StepReport:
        d = ctx.layout.config_dir_path
        if d.is_dir():
            return StepReport(step_id=self.step_id, action="unchanged", path=d)

        logger.info("Creating config directory %s...", d)
        if ctx.dry_run:
            logger.info("Would create %s", d)
            return StepReport(step_id=self.step_id, action="created", path=d)
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CopyFailed(f"Could not create config directory {d}: {e}") from e
        return StepReport(step_id=self.step_id, action="created", path=d)
