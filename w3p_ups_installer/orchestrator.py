from __future__ import annotations

import logging
from typing import Optional

import requests

from . import inspector, installer, uninstaller
from .activator import ServiceActivator
from .errors import InstallerError
from .installer import InstallResult
from .lib.command import run_cmd
from .lib.hostinfo import invoking_user
from .lib.systemd import Supervisor, Systemctl
from .preflight import Preflight
from .resolver import ArtifactResolver, ReleaseBundle
from .settings import Settings

logger = logging.getLogger(__name__)


class Orchestrator:
    """Sequences the lifecycle components for one invocation.

    Each public mode returns the process exit code.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        supervisor: Optional[Supervisor] = None,
        session: Optional[requests.Session] = None,
        preflight: Optional[Preflight] = None,
        dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.layout = settings.layout
        self.dry_run = dry_run
        self.supervisor = supervisor or Systemctl(dry_run=dry_run)
        self.resolver = ArtifactResolver(settings, session=session)
        self.preflight = preflight or Preflight(settings.arch)
        self.activator = ServiceActivator(self.supervisor, self.layout.unit_name)

    def install(self, release: Optional[str] = None) -> int:
        """Install, or upgrade in place when already installed."""

        bundle: Optional[ReleaseBundle] = None
        try:
            self.preflight.check()

            state = inspector.inspect(self.layout, self.supervisor)
            logger.info("Detected %s", state.describe())

            if release:
                version = self.resolver.pin(release)
                logger.info("Requested version: %s", version)
            else:
                version = self.resolver.resolve_latest()
                logger.info("Latest version: %s", version)

            bundle = self.resolver.fetch(version)
            result = installer.apply(bundle, state, self.layout, self.supervisor, dry_run=self.dry_run)
            installer.grant_serial_access(invoking_user(), dry_run=self.dry_run)
            self.activator.register()
            self.activator.start()
        except InstallerError as e:
            logger.error("%s", e.diagnostic())
            return 1
        except Exception as e:
            logger.debug("Unexpected failure", exc_info=True)
            logger.error("unexpected: %s", e)
            return 1
        finally:
            if bundle is not None and bundle.workspace is not None:
                bundle.workspace.release()
            self.resolver.close()

        self._show_summary(result)
        return 0

    def _show_summary(self, result: InstallResult) -> None:
        lay = self.layout
        svc = lay.service_name
        verb = "Upgrade" if result.upgrade else "Installation"
        print("")
        print("==========================================")
        print(f"{verb} complete! ({result.version})")
        print("==========================================")
        print("")
        print(f"Configuration file: {lay.config_path}")
        print(f"Shutdown script:    {lay.shutdown_script_path}")
        print(f"Binary location:    {lay.binary_path}")
        if result.action("30_install_config") == "example-written":
            print(f"New config template: {lay.config_example_path}")
        print("")
        print("Useful commands:")
        print(f"  Check status:     systemctl status {svc}")
        print(f"  View logs:        journalctl -u {svc} -f")
        print(f"  Edit config:      nano {lay.config_path}")
        print(f"  Restart service:  systemctl restart {svc}")
        print("")

        if self.activator.is_active():
            logger.info("Service is running")
        else:
            logger.warning("Service is not running. Check logs with: journalctl -u %s -e", svc)

    def uninstall(self) -> int:
        try:
            self.preflight.check_privilege()
        except InstallerError as e:
            logger.error("%s", e.diagnostic())
            return 1

        result = uninstaller.remove(self.layout, self.activator, dry_run=self.dry_run)
        for o in result.outcomes:
            if not o.ok:
                logger.warning("%s did not complete: %s", o.action, o.error)

        for path in result.preserved:
            logger.warning("Config directory %s was NOT removed (contains your settings)", path)
            logger.info("To completely remove: rm -rf %s", path)
        print("")
        logger.info("Uninstallation complete!")
        return 0

    def version_query(self) -> int:
        binary = self.layout.binary_path
        if not binary.is_file():
            print(f"{self.layout.binary_name} is not installed")
            return 0

        r = run_cmd([str(binary), "--version"], check=False)
        if r.returncode != 0:
            logger.warning("%s --version failed (%s): %s", binary, r.returncode, r.stderr.strip())
            return 0
        print(r.stdout.strip())
        return 0

    def status(self) -> int:
        state = inspector.inspect(self.layout, self.supervisor)
        lay = self.layout
        rows = [
            ("Binary", lay.binary_path, state.binary_present),
            ("Configuration", lay.config_path, state.config_present),
            ("Shutdown script", lay.shutdown_script_path, state.shutdown_script_present),
            ("Service unit", lay.unit_path, state.unit_registered),
        ]
        for label, path, present in rows:
            print(f"{label + ':':<17} {'present' if present else 'missing':<8} {path}")
        print(f"{'Service:':<17} {'active' if state.service_active else 'inactive'}")
        return 0
