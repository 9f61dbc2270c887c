from __future__ import annotations

import logging

from ..errors import CopyFailed
from ..lib.files import install_file
from ..pipeline import InstallCtx, StepReport

logger = logging.getLogger(__name__)


class InstallConfigStep:
    """Install config.toml once; afterwards it belongs to the operator.

    On later runs the bundled template is written next to it as
    config.toml.example so the operator can diff the two.
    """

    step_id = "30_install_config"

    def run(self, ctx: InstallCtx) -> StepReport:
        live = ctx.layout.config_path
        example = ctx.layout.config_example_path
        template = ctx.bundle.config_template

        # Re-checked here rather than trusted from ctx.state: an earlier
        # aborted run may have installed it since the snapshot was taken.
        if not live.exists():
            logger.info("Installing default configuration...")
            try:
                install_file(template, live, 0o644, dry_run=ctx.dry_run)
            except OSError as e:
                raise CopyFailed(f"Could not install configuration {live}: {e}") from e
            return StepReport(step_id=self.step_id, action="installed", path=live)

        logger.warning("Config file already exists, skipping (new template at %s)", example.name)
        try:
            install_file(template, example, 0o644, dry_run=ctx.dry_run)
        except OSError as e:
            raise CopyFailed(f"Could not write configuration template {example}: {e}") from e
        return StepReport(step_id=self.step_id, action="example-written", path=example)
