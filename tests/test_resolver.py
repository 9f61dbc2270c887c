from __future__ import annotations

import io
import tarfile

import pytest
import requests

from conftest import LATEST_URL, archive_url, default_members
from w3p_ups_installer.errors import ExtractFailed, FetchFailed, ResolutionFailed
from w3p_ups_installer.resolver import ArtifactResolver, ReleaseBundle, ScratchWorkspace, WorkspaceViolation
from w3p_ups_installer.settings import Settings


@pytest.fixture
def resolver(session):
    return ArtifactResolver(Settings(), session=session)


def test_resolve_latest_reads_tag(resolver, session):
    session.add_json(LATEST_URL, {"tag_name": "v1.2.0", "name": "Release 1.2.0"})
    assert resolver.resolve_latest() == "v1.2.0"


@pytest.mark.parametrize("payload", [{}, {"tag_name": ""}, {"tag_name": None}, {"tag_name": "v1 2"}, ["v1.0"]])
def test_resolve_latest_rejects_unusable_tags(resolver, session, payload):
    session.add_json(LATEST_URL, payload)
    with pytest.raises(ResolutionFailed):
        resolver.resolve_latest()


def test_resolve_latest_network_and_http_errors(resolver, session):
    session.routes[LATEST_URL] = requests.ConnectionError("no route to host")
    with pytest.raises(ResolutionFailed, match="no route"):
        resolver.resolve_latest()

    session.add_json(LATEST_URL, {"message": "rate limited"}, status=403)
    with pytest.raises(ResolutionFailed):
        resolver.resolve_latest()


def test_resolve_latest_non_json(resolver, session):
    session.add_bytes(LATEST_URL, b"<html>oops</html>")
    with pytest.raises(ResolutionFailed, match="not JSON"):
        resolver.resolve_latest()


def test_download_url_is_deterministic(resolver):
    assert resolver.download_url("v1.2.0") == archive_url("v1.2.0")


def test_pin_validates_tag(resolver):
    assert resolver.pin(" v0.9.1 ") == "v0.9.1"
    with pytest.raises(ResolutionFailed):
        resolver.pin("../evil")


def test_fetch_unpacks_bundle(resolver, session):
    session.add_release("v1.2.0")
    bundle = resolver.fetch("v1.2.0")
    try:
        assert bundle.version == "v1.2.0"
        assert bundle.binary.name == "w3p-ups"
        assert bundle.config_template.name == "config.toml.example"
        assert bundle.shutdown_script.name == "shutdown.sh"
        assert bundle.unit_file.name == "w3p-ups.service"
        assert bundle.workspace is not None and bundle.workspace.root.is_dir()
        assert session.requested == [archive_url("v1.2.0")]
    finally:
        bundle.workspace.release()
    assert not bundle.workspace.root.exists()


def test_fetch_uses_new_workspace_each_time(resolver, session):
    session.add_release("v1.2.0")
    a = resolver.fetch("v1.2.0")
    b = resolver.fetch("v1.2.0")
    try:
        assert a.workspace.root != b.workspace.root
    finally:
        a.workspace.release()
        b.workspace.release()


@pytest.mark.parametrize("missing", ["w3p-ups", "config.toml.example", "shutdown.sh", "w3p-ups.service"])
def test_partial_bundle_is_extract_failure_and_workspace_released(resolver, session, monkeypatch, missing):
    members = default_members("v1.2.0")
    del members[missing]
    session.add_release("v1.2.0", members)

    created = []
    real_create = ScratchWorkspace.create

    def spy_create(*args, **kwargs):
        ws = real_create(*args, **kwargs)
        created.append(ws)
        return ws

    monkeypatch.setattr(ScratchWorkspace, "create", spy_create)
    with pytest.raises(ExtractFailed):
        resolver.fetch("v1.2.0")
    assert len(created) == 1
    assert not created[0].root.exists()


def test_fetch_http_404_is_fetch_failure(resolver, session):
    with pytest.raises(FetchFailed):
        resolver.fetch("v9.9.9")


def test_fetch_corrupt_archive_is_extract_failure(resolver, session):
    session.add_bytes(archive_url("v1.2.0"), b"definitely not gzip")
    with pytest.raises(ExtractFailed):
        resolver.fetch("v1.2.0")


def test_fetch_refuses_path_traversal(resolver, session):
    members = default_members("v1.2.0")
    members["../escape.txt"] = b"boom"
    session.add_release("v1.2.0", members)
    with pytest.raises(ExtractFailed, match="escape"):
        resolver.fetch("v1.2.0")


def test_fetch_refuses_symlinks(resolver, session):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        link = tarfile.TarInfo("w3p-ups")
        link.type = tarfile.SYMTYPE
        link.linkname = "/bin/sh"
        tar.addfile(link)
    session.add_bytes(archive_url("v1.2.0"), buf.getvalue())
    with pytest.raises(ExtractFailed, match="links"):
        resolver.fetch("v1.2.0")


def test_bundle_rejects_ambiguous_members(tmp_path):
    for name, data in default_members("v1").items():
        (tmp_path / name).write_bytes(data)
    (tmp_path / "other.service").write_text("[Unit]\n")
    with pytest.raises(ExtractFailed, match="more than one"):
        ReleaseBundle.from_dir(tmp_path, version="v1", binary_name="w3p-ups")


def test_workspace_resolve_rel(tmp_path):
    ws = ScratchWorkspace(root=tmp_path.resolve())
    assert ws.resolve_rel("bundle/w3p-ups") == tmp_path.resolve() / "bundle" / "w3p-ups"
    with pytest.raises(WorkspaceViolation):
        ws.resolve_rel("/etc/passwd")
    with pytest.raises(WorkspaceViolation):
        ws.resolve_rel("bundle/../../x")


def test_workspace_release_is_idempotent():
    ws = ScratchWorkspace.create()
    (ws.root / "f").write_text("x")
    ws.release()
    ws.release()
    assert not ws.root.exists()



def test_workspace_context_manager_releases():
    with ScratchWorkspace.create() as ws:
        (ws.root / "f").write_text("x")
        assert ws.root.is_dir()
    assert not ws.root.exists()


def test_injected_session_is_not_closed(session):
    resolver = ArtifactResolver(Settings(), session=session)
    resolver.close()
    assert resolver.session is session


def test_session_is_created_on_first_use():
    resolver = ArtifactResolver(Settings())
    assert resolver._session is None
    assert isinstance(resolver.session, requests.Session)
    resolver.close()
    assert resolver._session is None
