from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Layout:
    """Host paths owned by the installer.

    All absolute paths are joined under ``root`` so a sandbox directory can
    stand in for ``/``.
    """

    root: str = "/"
    install_dir: str = "/usr/local/bin"
    config_dir: str = "/etc/w3p-ups"
    systemd_dir: str = "/etc/systemd/system"
    service_name: str = "w3p-ups"
    binary_name: str = "w3p-ups"

    def _under_root(self, path: str) -> Path:
        return Path(self.root) / path.lstrip("/")

    @property
    def unit_name(self) -> str:
        return f"{self.service_name}.service"

    @property
    def binary_path(self) -> Path:
        return self._under_root(self.install_dir) / self.binary_name

    @property
    def config_dir_path(self) -> Path:
        return self._under_root(self.config_dir)

    @property
    def config_path(self) -> Path:
        return self.config_dir_path / "config.toml"

    @property
    def config_example_path(self) -> Path:
        return self.config_dir_path / "config.toml.example"

    @property
    def shutdown_script_path(self) -> Path:
        return self.config_dir_path / "shutdown.sh"

    @property
    def unit_path(self) -> Path:
        return self._under_root(self.systemd_dir) / self.unit_name

