"""
Combi Oven Update Management System
Copyright (C) 2024 Jose Adrian Perez Cueto

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

"""
Configuration for the combi oven deployer.

The defaults below describe the board layout the deployer was written for.
They can be overridden with a JSON file (see load_config) so the deployment
sequence can run against a scratch directory tree.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigError

# Logging
LOG_FILE = "/var/log/usboven.log"

# Remote source
REPO_URL = "https://github.com/adcueto/usb_combioven/archive/refs/heads/master.zip"
REPO_FOLDER = "usb_combioven-master"

# Staging
TEMP_DIR = "/tmp/github_repo"
DOWNLOAD_FILE = "/tmp/github_repo.zip"

# Storyboard (Crank) layout
CRANK_ROOT = "/usr/crank"
APPS_ROOT = "/usr/crank/apps"
RUNTIMES_DIR = "/usr/crank/runtimes"
APP_DEST = "/usr/crank/apps/ProServices"
RUNTIME_ZIP = "linux-imx8yocto-armle-opengles_2.0-7.0-40118.zip"

# Unit files shipped in <repo>/services and where they are installed
SERVICE_MAPPING = [
    ("storyboard_splash.service", "/etc/systemd/system"),
    ("storyboard.service", "/etc/systemd/system"),
    ("combi_backend.service", "/lib/systemd/system"),
    ("wired.network", "/etc/systemd/network"),
    ("wireless.network", "/etc/systemd/network"),
    ("wpa_supplicant@wlan0.service", "/etc/systemd/system"),
]

SERVICES_TO_ENABLE = [
    "storyboard_splash.service",
    "storyboard.service",
    "combi_backend.service",
    "wpa_supplicant@wlan0.service",
    "systemd-resolved.service",
]

# Network stack: connman is replaced by systemd-networkd/resolved
CONNECTION_HANDLERS = ["connman", "connman-env"]
RESOLVER_FILES = ["/etc/resolv.conf", "/etc/tmpfiles.d/connman_resolvconf.conf"]
RESOLV_CONF = "/etc/resolv.conf"
RESOLVED_RESOLV_CONF = "/run/systemd/resolve/resolv.conf"
LEGACY_SUPPLICANT = "wpa_supplicant"

# Weston unit that conflicts with the Storyboard display
DISPLAY_UNIT = "/lib/systemd/system/weston.service"
DISPLAY_UNIT_RENAMED = "/lib/systemd/system/weston_Pro_S.service"

BOOT_LOGO_DEST = "/run/media/mmcblk2p1/logo.bmp"

RUNTIME_MODE = 0o775
SCRIPTS_MODE = 0o775
UNIT_DIR_MODE = 0o755


@dataclass
class DeployConfig:
    """Paths, URLs and unit lists used by a deployment run."""
    log_file: str = LOG_FILE
    repo_url: str = REPO_URL
    repo_folder: str = REPO_FOLDER
    temp_dir: str = TEMP_DIR
    download_file: str = DOWNLOAD_FILE
    crank_root: str = CRANK_ROOT
    apps_root: str = APPS_ROOT
    runtimes_dir: str = RUNTIMES_DIR
    app_dest: str = APP_DEST
    runtime_zip: str = RUNTIME_ZIP
    service_mapping: List[Tuple[str, str]] = field(default_factory=lambda: list(SERVICE_MAPPING))
    services_to_enable: List[str] = field(default_factory=lambda: list(SERVICES_TO_ENABLE))
    connection_handlers: List[str] = field(default_factory=lambda: list(CONNECTION_HANDLERS))
    resolver_files: List[str] = field(default_factory=lambda: list(RESOLVER_FILES))
    resolv_conf: str = RESOLV_CONF
    resolved_resolv_conf: str = RESOLVED_RESOLV_CONF
    legacy_supplicant: str = LEGACY_SUPPLICANT
    display_unit: str = DISPLAY_UNIT
    display_unit_renamed: str = DISPLAY_UNIT_RENAMED
    boot_logo_dest: str = BOOT_LOGO_DEST
    download_timeout: Optional[float] = None
    strict_rollback_version: bool = False

    @property
    def repo_root(self) -> str:
        """Top-level folder of the extracted branch archive."""
        return os.path.join(self.temp_dir, self.repo_folder)

    @property
    def app_path(self) -> str:
        return os.path.join(self.repo_root, "app")

    @property
    def runtime_archive(self) -> str:
        return os.path.join(self.repo_root, "linux", self.runtime_zip)

    @property
    def scripts_dir(self) -> str:
        return os.path.join(self.repo_root, "scripts")

    @property
    def services_dir(self) -> str:
        return os.path.join(self.repo_root, "services")

    @property
    def boot_logo(self) -> str:
        return os.path.join(self.repo_root, "img", "logo.bmp")


def _coerce_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(DeployConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    overrides = dict(data)
    if "service_mapping" in overrides:
        try:
            overrides["service_mapping"] = [
                (str(source), str(destination))
                for source, destination in overrides["service_mapping"]
            ]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"service_mapping must be a list of [source, destination] pairs: {e}") from e

    for key in ("services_to_enable", "connection_handlers", "resolver_files"):
        if key in overrides and not isinstance(overrides[key], list):
            raise ConfigError(f"{key} must be a list")

    return overrides


def load_config(path: Optional[str] = None) -> DeployConfig:
    """
    Build the deployment configuration.

    Args:
        path: Optional JSON file whose top-level keys override the defaults

    Returns:
        DeployConfig: Defaults, with any overrides applied

    Raises:
        ConfigError: If the file cannot be read or holds unknown keys
    """
    config = DeployConfig()
    if not path:
        return config

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to load configuration from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")

    return replace(config, **_coerce_overrides(data))
