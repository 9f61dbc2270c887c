from __future__ import annotations

import logging
import shutil
import tarfile
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests

from .errors import ExtractFailed, FetchFailed, ResolutionFailed
from .settings import Settings

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "release.tar.gz"
BUNDLE_DIR = "bundle"


class WorkspaceViolation(ValueError):
    pass


@dataclass(frozen=True)
class ScratchWorkspace:
    """Uniquely named temporary directory for one run's release bundle."""

    root: Path

    @classmethod
    def create(cls, prefix: str = "w3p-ups-") -> "ScratchWorkspace":
        return cls(root=Path(tempfile.mkdtemp(prefix=prefix)).resolve())

    def resolve_rel(self, rel: str | Path, *, within: str = ".") -> Path:
        """Resolve an archive-provided relative path inside ``within`` (a workspace subdirectory)."""
        rp = Path(rel)
        if rp.is_absolute():
            raise WorkspaceViolation(f"Absolute paths are not allowed: {rel}")

        base = (self.root / within).resolve()
        candidate = (base / rp).resolve()
        try:
            candidate.relative_to(base)
        except ValueError as e:
            raise WorkspaceViolation(f"Path escapes workspace: {rel}") from e
        return candidate

    def release(self) -> None:
        """Delete the workspace. Safe to call more than once; never raises."""
        if not self.root.exists():
            return
        try:
            shutil.rmtree(self.root)
            logger.debug("Released scratch workspace %s", self.root)
        except OSError as e:
            logger.warning("Could not remove scratch workspace %s: %s", self.root, e)

    def __enter__(self) -> "ScratchWorkspace":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


@dataclass(frozen=True)
class ReleaseBundle:
    version: str
    root: Path
    binary: Path
    config_template: Path
    shutdown_script: Path
    unit_file: Path
    workspace: Optional[ScratchWorkspace] = None

    @classmethod
    def from_dir(
        cls,
        root: Path,
        *,
        version: str,
        binary_name: str,
        workspace: Optional[ScratchWorkspace] = None,
    ) -> "ReleaseBundle":
        """Locate the four bundle members at the archive root.

        A partially populated bundle is an extraction failure.
        """

        def _single(pattern: str, what: str) -> Path:
            found = sorted(p for p in root.glob(pattern) if p.is_file())
            if not found:
                raise ExtractFailed(f"Release {version} is missing the {what} ({pattern})")
            if len(found) > 1:
                names = ", ".join(p.name for p in found)
                raise ExtractFailed(f"Release {version} has more than one {what}: {names}")
            return found[0]

        return cls(
            version=version,
            root=root,
            binary=_single(binary_name, "executable"),
            config_template=_single("*.toml.example", "configuration template"),
            shutdown_script=_single("shutdown.sh", "shutdown script"),
            unit_file=_single("*.service", "service unit"),
            workspace=workspace,
        )


def _valid_tag(tag: object) -> bool:
    if not isinstance(tag, str) or not tag:
        return False
    return not any(c.isspace() for c in tag) and "/" not in tag


def _safe_members(ws: ScratchWorkspace, subdir: str, tar: tarfile.TarFile) -> List[tarfile.TarInfo]:
    members = tar.getmembers()
    for m in members:
        if m.issym() or m.islnk() or m.isdev():
            raise ExtractFailed(f"Refusing archive member {m.name!r} (links and devices are not allowed)")
        try:
            ws.resolve_rel(m.name, within=subdir)
        except WorkspaceViolation as e:
            raise ExtractFailed(f"Refusing archive member {m.name!r}: {e}") from e
    return members


class ArtifactResolver:
    """Talks to the release distribution endpoint (GitHub releases)."""

    def __init__(self, settings: Settings, *, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def close(self) -> None:
        """Close the HTTP session if this resolver opened it."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    @property
    def latest_url(self) -> str:
        return f"{self.settings.api_url}/repos/{self.settings.repo}/releases/latest"

    def download_url(self, version: str) -> str:
        s = self.settings
        return f"{s.download_url}/{s.repo}/releases/download/{version}/w3p-ups-{version}-{s.arch}.tar.gz"

    def pin(self, tag: str) -> str:
        """Use an operator-chosen release tag instead of resolving latest."""
        tag = (tag or "").strip()
        if not _valid_tag(tag):
            raise ResolutionFailed(f"Invalid release tag {tag!r}")
        return tag

    def resolve_latest(self) -> str:
        url = self.latest_url
        logger.debug("Resolving latest release via %s", url)
        try:
            response = self.session.get(
                url,
                timeout=self.settings.timeout_seconds,
                headers={"Accept": "application/vnd.github+json"},
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ResolutionFailed(f"Failed to get latest version from GitHub: {e}") from e
        except ValueError as e:
            raise ResolutionFailed("Failed to get latest version from GitHub: response is not JSON") from e

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not _valid_tag(tag):
            raise ResolutionFailed(f"Failed to get latest version from GitHub: unusable tag {tag!r}")
        return tag

    def fetch(self, version: str) -> ReleaseBundle:
        """Download and unpack ``version`` into a fresh scratch workspace.

        On success the caller owns the bundle's workspace and must release it.
        """

        ws = ScratchWorkspace.create()
        try:
            archive = self._download(version, ws.root / ARCHIVE_NAME)
            dest = ws.root / BUNDLE_DIR
            self._extract(ws, archive, dest)
            return ReleaseBundle.from_dir(
                dest,
                version=version,
                binary_name=self.settings.layout.binary_name,
                workspace=ws,
            )
        except BaseException:
            ws.release()
            raise

    def _download(self, version: str, target: Path) -> Path:
        url = self.download_url(version)
        logger.info("Downloading w3p-ups %s...", version)
        logger.debug("GET %s -> %s", url, target)
        try:
            with self.session.get(url, stream=True, timeout=self.settings.timeout_seconds) as response:
                response.raise_for_status()
                with target.open("wb") as f:
                    for chunk in response.iter_content(chunk_size=64 * 1024):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            raise FetchFailed(f"Download of {url} failed: {e}") from e
        except OSError as e:
            raise FetchFailed(f"Could not write {target}: {e}") from e
        return target

    def _extract(self, ws: ScratchWorkspace, archive: Path, dest: Path) -> None:
        logger.info("Extracting...")
        dest.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive, "r:gz") as tar:
                members = _safe_members(ws, dest.name, tar)
                tar.extractall(dest, members=members)
        except (tarfile.TarError, OSError, EOFError) as e:
            raise ExtractFailed(f"Could not extract {archive.name}: {e}") from e
