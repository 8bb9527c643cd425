"""Shared fixtures and test doubles for the combi_updates test suite."""

import io
import logging
import os
import shutil
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from combi_updates.components import ArchiveFetcher, LocalFileSystem, ServiceManager
from combi_updates.config import DeployConfig, SERVICE_MAPPING
from combi_updates.deployer import Deployer
from combi_updates.errors import FetchError, ServiceError
from combi_updates.utils.index import LOGGER_NAME

REPO_FOLDER = "usb_combioven-master"
RUNTIME_ZIP = "linux-imx8yocto-armle-opengles_2.0-7.0-40118.zip"

DEFAULT_RELEASES = {
    "1.0.0": {"main.gapp": "v1.0.0", "images/oven.png": "png-1.0.0"},
    "1.5.2": {"main.gapp": "v1.5.2", "images/oven.png": "png-1.5.2", "fonts/sans.ttf": "font"},
    "2.0.0": {"main.gapp": "v2.0.0"},
    "10.0.1": {"main.gapp": "v10.0.1", "config/backend.json": "{}"},
}


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeArchiveFetcher(ArchiveFetcher):
    """Serves a local archive instead of downloading, or fails on demand."""

    def __init__(self, source: Optional[Path] = None, error: Optional[str] = None):
        self.source = source
        self.error = error
        self.calls: List[tuple] = []

    def fetch(self, url: str, destination: str) -> None:
        self.calls.append((url, destination))
        if self.error:
            raise FetchError(self.error)
        shutil.copyfile(self.source, destination)


class FakeServiceManager(ServiceManager):
    """Records service manager calls in memory."""

    def __init__(self, fail_reboot: bool = False):
        self.calls: List[tuple] = []
        self.fail_reboot = fail_reboot

    def stop(self, *units: str) -> bool:
        self.calls.append(("stop",) + units)
        return True

    def disable(self, *units: str) -> bool:
        self.calls.append(("disable",) + units)
        return True

    def enable(self, *units: str) -> bool:
        self.calls.append(("enable",) + units)
        return True

    def start(self, *units: str) -> bool:
        self.calls.append(("start",) + units)
        return True

    def daemon_reload(self) -> bool:
        self.calls.append(("daemon-reload",))
        return True

    def reboot(self) -> None:
        if self.fail_reboot:
            raise ServiceError("Reboot failed: permission denied")
        self.calls.append(("reboot",))

    @property
    def rebooted(self) -> bool:
        return ("reboot",) in self.calls


class RecordingFileSystem(LocalFileSystem):
    """LocalFileSystem that keeps a log of every mutating call."""

    def __init__(self):
        self.mutations: List[tuple] = []

    def make_dirs(self, *paths):
        self.mutations.append(("make_dirs",) + paths)
        super().make_dirs(*paths)

    def remove(self, *paths):
        self.mutations.append(("remove",) + paths)
        super().remove(*paths)

    def remove_tree(self, *paths):
        self.mutations.append(("remove_tree",) + paths)
        super().remove_tree(*paths)

    def copy_file(self, source, destination):
        self.mutations.append(("copy_file", source, destination))
        super().copy_file(source, destination)

    def copy_tree(self, source, destination):
        self.mutations.append(("copy_tree", source, destination))
        return super().copy_tree(source, destination)

    def set_mode(self, path, mode, recursive=False):
        self.mutations.append(("set_mode", path, mode, recursive))
        super().set_mode(path, mode, recursive=recursive)

    def symlink(self, target, link_path):
        self.mutations.append(("symlink", target, link_path))
        super().symlink(target, link_path)

    def rename(self, source, destination):
        self.mutations.append(("rename", source, destination))
        super().rename(source, destination)


# ---------------------------------------------------------------------------
# Archive builder
# ---------------------------------------------------------------------------


def _runtime_zip_bytes() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        info = zipfile.ZipInfo("linux-imx8yocto-armle-opengles/bin/sbengine")
        info.create_system = 3
        info.external_attr = (0o755 << 16)
        zf.writestr(info, "engine")
        zf.writestr("linux-imx8yocto-armle-opengles/lib/libgre.so", "lib")
    return buffer.getvalue()


def build_repo_archive(path: Path,
                       releases: Optional[Dict[str, Dict[str, str]]] = None,
                       omit: Iterable[str] = (),
                       unit_files: Optional[Iterable[str]] = None) -> Path:
    """
    Write a GitHub-style branch archive of the usb_combioven repository.

    Args:
        path: Archive file to create
        releases: {version: {relative path: content}} under app/
        omit: Parts to leave out: "app", "runtime", "scripts", "services", "logo"
        unit_files: Unit file names to ship (defaults to every mapped file)
    """
    releases = DEFAULT_RELEASES if releases is None else releases
    omit = set(omit)
    if unit_files is None:
        unit_files = [name for name, _dest in SERVICE_MAPPING]

    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(f"{REPO_FOLDER}/README.md", "usb_combioven")
        if "app" not in omit:
            zf.writestr(f"{REPO_FOLDER}/app/CHANGELOG.md", "changes")
            for version, files in releases.items():
                for rel_path, content in files.items():
                    zf.writestr(f"{REPO_FOLDER}/app/{version}/{rel_path}", content)
        if "runtime" not in omit:
            zf.writestr(f"{REPO_FOLDER}/linux/{RUNTIME_ZIP}", _runtime_zip_bytes())
        if "scripts" not in omit:
            info = zipfile.ZipInfo(f"{REPO_FOLDER}/scripts/start_storyboard.sh")
            info.create_system = 3
            info.external_attr = (0o644 << 16)
            zf.writestr(info, "#!/bin/sh\n")
            zf.writestr(f"{REPO_FOLDER}/scripts/tools/net_check.sh", "#!/bin/sh\n")
        if "services" not in omit:
            zf.writestr(f"{REPO_FOLDER}/services/.keep", "")
            for name in unit_files:
                zf.writestr(f"{REPO_FOLDER}/services/{name}", f"[Unit]\nDescription={name}\n")
        if "logo" not in omit:
            zf.writestr(f"{REPO_FOLDER}/img/logo.bmp", "BMlogo")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_update_logger():
    """Close handlers installed by setup_update_logging between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def board_root(tmp_path: Path) -> Path:
    """A scratch copy of the board's filesystem layout."""
    root = tmp_path / "board"
    for directory in (
        "tmp",
        "var/log",
        "usr/crank",
        "etc/systemd/system",
        "etc/systemd/network",
        "etc/tmpfiles.d",
        "lib/systemd/system",
        "run/systemd/resolve",
        "run/media/mmcblk2p1",
    ):
        (root / directory).mkdir(parents=True, exist_ok=True)

    (root / "etc/resolv.conf").write_text("nameserver 127.0.0.1\n")
    (root / "etc/tmpfiles.d/connman_resolvconf.conf").write_text("L /etc/resolv.conf\n")
    (root / "lib/systemd/system/weston.service").write_text("[Unit]\nDescription=Weston\n")
    return root


@pytest.fixture
def deploy_config(board_root: Path) -> DeployConfig:
    """DeployConfig with every path moved under board_root."""
    def p(path: str) -> str:
        return str(board_root / path.lstrip("/"))

    return DeployConfig(
        log_file=p("/var/log/usboven.log"),
        repo_url="https://example.invalid/usb_combioven/master.zip",
        temp_dir=p("/tmp/github_repo"),
        download_file=p("/tmp/github_repo.zip"),
        crank_root=p("/usr/crank"),
        apps_root=p("/usr/crank/apps"),
        runtimes_dir=p("/usr/crank/runtimes"),
        app_dest=p("/usr/crank/apps/ProServices"),
        service_mapping=[(name, p(dest)) for name, dest in SERVICE_MAPPING],
        resolver_files=[p("/etc/resolv.conf"), p("/etc/tmpfiles.d/connman_resolvconf.conf")],
        resolv_conf=p("/etc/resolv.conf"),
        resolved_resolv_conf=p("/run/systemd/resolve/resolv.conf"),
        display_unit=p("/lib/systemd/system/weston.service"),
        display_unit_renamed=p("/lib/systemd/system/weston_Pro_S.service"),
        boot_logo_dest=p("/run/media/mmcblk2p1/logo.bmp"),
    )


@pytest.fixture
def repo_archive(tmp_path: Path) -> Path:
    return build_repo_archive(tmp_path / "master.zip")


@pytest.fixture
def services() -> FakeServiceManager:
    return FakeServiceManager()


@pytest.fixture
def fs() -> RecordingFileSystem:
    return RecordingFileSystem()


@pytest.fixture
def make_deployer(deploy_config, services, fs):
    """Build a Deployer around the fakes; the archive or fetch error is chosen per test."""
    def _make(archive: Optional[Path] = None, error: Optional[str] = None,
              config: Optional[DeployConfig] = None) -> Deployer:
        fetcher = FakeArchiveFetcher(source=archive, error=error)
        return Deployer(config or deploy_config, fetcher=fetcher, fs=fs, services=services)
    return _make


def tree_files(directory) -> set:
    """Relative paths of every file below directory."""
    directory = str(directory)
    return {
        os.path.relpath(os.path.join(root, name), directory)
        for root, _dirs, files in os.walk(directory)
        for name in files
    }
