from __future__ import annotations

import logging
from typing import Callable

from .errors import InsufficientPrivilege, UnsupportedArchitecture
from .lib.hostinfo import effective_uid, host_machine, normalize_arch

logger = logging.getLogger(__name__)


class Preflight:
    """Read-only execution preconditions, checked before any mutation."""

    def __init__(
        self,
        arch: str = "aarch64",
        *,
        euid_fn: Callable[[], int] = effective_uid,
        machine_fn: Callable[[], str] = host_machine,
    ) -> None:
        self.arch = arch
        self.euid_fn = euid_fn
        self.machine_fn = machine_fn

    def check_privilege(self) -> None:
        if self.euid_fn() != 0:
            raise InsufficientPrivilege("This script must be run as root (use sudo)")

    def check_architecture(self) -> None:
        machine = (self.machine_fn() or "").strip()
        if machine != self.arch:
            raise UnsupportedArchitecture(
                f"This service is designed for {normalize_arch(self.arch).upper()} ({self.arch}) "
                f"architecture; detected architecture: {machine or 'unknown'}"
            )

    def check(self) -> None:
        self.check_privilege()
        self.check_architecture()
        logger.debug("Preflight passed (root, arch=%s)", self.arch)
