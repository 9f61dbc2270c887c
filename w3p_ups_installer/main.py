from __future__ import annotations

import argparse
import logging
from typing import Optional

from . import __version__
from .errors import ConfigError
from .logging_utils import configure_logging
from .orchestrator import Orchestrator
from .settings import DEFAULT_SETTINGS_PATH, load_settings

logger = logging.getLogger(__name__)

BANNER = """
╔═══════════════════════════════════════════╗
║   Web3 Pi UPS Service Installer           ║
╚═══════════════════════════════════════════╝
"""

BOOTSTRAP_REPO = "Web3-Pi/Web3-Pi-UPS-Service"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="w3p-ups-installer",
        description="Install, upgrade or remove the w3p-ups battery monitor service.",
        epilog=(
            "With no mode flag the latest release is installed, or upgraded in place.\n\n"
            "One-liner install:\n"
            f"  curl -fsSL https://raw.githubusercontent.com/{BOOTSTRAP_REPO}/main/install.sh | sudo bash"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("-u", "--uninstall", action="store_true", help="Uninstall the service")
    mode.add_argument("-v", "--version", dest="version_query", action="store_true", help="Show installed version")
    mode.add_argument("-s", "--status", action="store_true", help="Show what is installed and running")
    p.add_argument("--config", default=None, help=f"Installer settings (YAML, default {DEFAULT_SETTINGS_PATH})")
    p.add_argument("--log", default=None, help="Path to installer log")
    p.add_argument("--release", default=None, help="Install this release tag instead of the latest")
    p.add_argument("--dry-run", action="store_true", help="Log every change without making it")
    p.add_argument("--installer-version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: Optional[list[str]] = None, *, orchestrator: Optional[Orchestrator] = None) -> int:
    args = build_parser().parse_args(argv)
    mutating = not (args.version_query or args.status)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        configure_logging(log_path=None)
        logger.error("%s", e.diagnostic())
        return 1

    configure_logging(log_path=(args.log or settings.log_path) if mutating else None)

    orch = orchestrator or Orchestrator(settings, dry_run=bool(args.dry_run))

    if args.version_query:
        return orch.version_query()
    if args.status:
        return orch.status()

    print(BANNER)
    if args.dry_run:
        logger.info("Dry run: no changes will be made")
    if args.uninstall:
        return orch.uninstall()
    return orch.install(release=args.release)
