from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from .inspector import InstalledState
    from .lib.env import Layout
    from .lib.systemd import Supervisor
    from .resolver import ReleaseBundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallCtx:
    bundle: "ReleaseBundle"
    state: "InstalledState"
    layout: "Layout"
    supervisor: "Supervisor"
    dry_run: bool = False


@dataclass(frozen=True)
class StepReport:
    step_id: str
    action: str
    path: Optional[Path] = None


class Step(Protocol):
    """A single idempotent step."""

    step_id: str

    def run(self, ctx: InstallCtx) -> StepReport:
        ...


@dataclass(frozen=True)
class PipelineResult:
    reports: List[StepReport]


def run_pipeline(*, ctx: InstallCtx, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order.

    A failing step aborts the remaining ones; completed steps are left in
    place since every step is safe to re-run.
    """

    reports: List[StepReport] = []
    for step in steps:
        logger.debug("Running step %s", step.step_id)
        report = step.run(ctx)
        logger.debug("Step %s: %s %s", step.step_id, report.action, report.path or "")
        reports.append(report)
    return PipelineResult(reports=reports)
