from __future__ import annotations

import io
import json
import logging
import tarfile
from pathlib import Path
from typing import Dict, Optional, Set

import pytest
import requests

from w3p_ups_installer.lib.command import CmdResult, CommandError
from w3p_ups_installer.lib.env import Layout
from w3p_ups_installer.preflight import Preflight
from w3p_ups_installer.settings import Settings

REPO = "Web3-Pi/Web3-Pi-UPS-Service"
LATEST_URL = f"https://api.github.com/repos/{REPO}/releases/latest"

UNIT_TEXT = """[Unit]
Description=Web3 Pi UPS Service

[Service]
ExecStart=/usr/local/bin/w3p-ups
Restart=always

[Install]
WantedBy=multi-user.target
"""


def archive_url(version: str, arch: str = "aarch64") -> str:
    return f"https://github.com/{REPO}/releases/download/{version}/w3p-ups-{version}-{arch}.tar.gz"


def default_members(version: str) -> Dict[str, bytes]:
    return {
        "w3p-ups": f"#!/bin/sh\necho 'w3p-ups {version}'\n".encode(),
        "config.toml.example": f"# template {version}\n[battery]\nshutdown_threshold = 10\n".encode(),
        "shutdown.sh": b"#!/bin/bash\nshutdown -h now\n",
        "w3p-ups.service": UNIT_TEXT.encode(),
    }


def make_archive(members: Dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            info.mode = 0o755 if name in {"w3p-ups", "shutdown.sh"} else 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"") -> None:
        self.status_code = status_code
        self.content = body

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        return json.loads(self.content.decode("utf-8"))

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None


class FakeSession:
    """Serves canned responses by URL and records every request."""

    def __init__(self) -> None:
        self.routes: Dict[str, object] = {}
        self.requested: list[str] = []

    def add_json(self, url: str, payload: object, status: int = 200) -> None:
        self.routes[url] = FakeResponse(status, json.dumps(payload).encode())

    def add_bytes(self, url: str, body: bytes, status: int = 200) -> None:
        self.routes[url] = FakeResponse(status, body)

    def add_release(self, version: str, members: Optional[Dict[str, bytes]] = None, *, latest: bool = True) -> None:
        if latest:
            self.add_json(LATEST_URL, {"tag_name": version})
        self.add_bytes(archive_url(version), make_archive(members or default_members(version)))

    def get(self, url: str, **kwargs):
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        return route


class FakeSupervisor:
    """In-memory systemd: unknown units make stop/disable fail like systemctl."""

    def __init__(self, unit_dir: Optional[Path] = None) -> None:
        self.unit_dir = unit_dir
        self.enabled: Set[str] = set()
        self.active: Set[str] = set()
        self.calls: list[tuple] = []
        self.fail: Set[str] = set()

    def _check(self, action: str, unit: str = "") -> None:
        self.calls.append((action, unit) if unit else (action,))
        if action in self.fail:
            raise CommandError(CmdResult(argv=["systemctl", action, unit], returncode=1, stdout="", stderr=f"{action} failed"))

    def _known(self, unit: str) -> bool:
        return self.unit_dir is None or (self.unit_dir / unit).exists()

    def _not_loaded(self, action: str, unit: str) -> None:
        raise CommandError(
            CmdResult(
                argv=["systemctl", action, unit],
                returncode=5,
                stdout="",
                stderr=f"Failed to {action} {unit}: Unit {unit} not loaded.",
            )
        )

    def daemon_reload(self) -> None:
        self._check("daemon-reload")

    def enable(self, unit: str) -> None:
        self._check("enable", unit)
        if not self._known(unit):
            self._not_loaded("enable", unit)
        self.enabled.add(unit)

    def start(self, unit: str) -> None:
        self._check("start", unit)
        if not self._known(unit):
            self._not_loaded("start", unit)
        self.active.add(unit)

    def stop(self, unit: str) -> None:
        self._check("stop", unit)
        if not self._known(unit):
            self._not_loaded("stop", unit)
        self.active.discard(unit)

    def disable(self, unit: str) -> None:
        self._check("disable", unit)
        if not self._known(unit):
            self._not_loaded("disable", unit)
        self.enabled.discard(unit)

    def is_active(self, unit: str) -> bool:
        return unit in self.active


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h in before or type(h).__module__.startswith("_pytest"):
            continue
        root.removeHandler(h)
        h.close()
    root.setLevel(level)
    for attr in ("_w3p_configured", "_w3p_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture
def layout(host_root: Path) -> Layout:
    return Layout(root=str(host_root))


@pytest.fixture
def settings(host_root: Path, tmp_path: Path) -> Settings:
    return Settings(raw={"paths": {"root": str(host_root)}, "log_path": str(tmp_path / "installer.log")})


@pytest.fixture
def supervisor(layout: Layout) -> FakeSupervisor:
    return FakeSupervisor(unit_dir=layout.unit_path.parent)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def root_preflight() -> Preflight:
    return Preflight("aarch64", euid_fn=lambda: 0, machine_fn=lambda: "aarch64")
