from __future__ import annotations

import logging
import os
import platform
from typing import Mapping, Optional

from .command import run_cmd

logger = logging.getLogger(__name__)


def normalize_arch(machine: str) -> str:
    m = machine.strip().lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "armhf",
        "armv6l": "armhf",
    }.get(m, m)


def host_machine() -> str:
    return platform.machine()


def effective_uid() -> int:
    return os.geteuid()


def invoking_user(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the unprivileged user behind ``sudo`` (None when run directly as root)."""

    env = os.environ if environ is None else environ
    user = (env.get("SUDO_USER") or "").strip()
    if not user or user == "root":
        return None
    return user


def add_user_to_group(user: str, group: str, *, dry_run: bool = False) -> bool:
    """Best-effort supplementary group membership."""

    r = run_cmd(["usermod", "-a", "-G", group, user], check=False, dry_run=dry_run)
    if r.returncode != 0:
        logger.warning("Could not add user '%s' to %s group: %s", user, group, r.stderr.strip() or r.returncode)
        return False
    return True
