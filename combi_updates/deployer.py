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
Combi oven deployer.

Downloads the usb_combioven branch archive, installs the Storyboard runtime,
helper scripts and unit files, reconfigures the network stack, installs the
requested application version, swaps the boot logo and reboots the board.

Usage:
    from combi_updates.deployer import Deployer, DeployRequest, Operation

    deployer = Deployer(load_config())
    result = deployer.deploy(DeployRequest(Operation.ROLLBACK, "1.5.2"))
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .config import DeployConfig, RUNTIME_MODE, SCRIPTS_MODE, UNIT_DIR_MODE
from .components import (
    ArchiveExtractor,
    ArchiveFetcher,
    FileSystemOps,
    LocalFileSystem,
    RequestsArchiveFetcher,
    ServiceManager,
    SystemdServiceManager,
    ZipArchiveExtractor
)
from .errors import ArgumentError, ExtractionError, FetchError, LayoutError, VersionNotFoundError
from .steps import DeploymentResult, DeploymentStep, StepRunner
from .utils.index import log_message
from .utils.permissions import PermissionManager, PermissionTarget, directory_entry_targets
from .utils.versions import is_release_version, select_latest_version


class Operation(Enum):
    UPDATE = "update"
    ROLLBACK = "rollback"


@dataclass
class DeployRequest:
    """What to deploy: the latest release, or a specific version for rollback."""
    operation: Operation
    version: Optional[str] = None


class Deployer:
    """Applies a release from the repository archive to the board."""

    def __init__(self, config: DeployConfig,
                 fetcher: Optional[ArchiveFetcher] = None,
                 extractor: Optional[ArchiveExtractor] = None,
                 fs: Optional[FileSystemOps] = None,
                 services: Optional[ServiceManager] = None):
        self.config = config
        self.fetcher = fetcher or RequestsArchiveFetcher(timeout=config.download_timeout)
        self.extractor = extractor or ZipArchiveExtractor()
        self.fs = fs or LocalFileSystem()
        self.services = services or SystemdServiceManager()
        self.permissions = PermissionManager(self.fs)
        self.runner = StepRunner()
        self._request: Optional[DeployRequest] = None
        self._latest_version: Optional[str] = None
        self._selected_version: Optional[str] = None

    def validate_request(self, request: DeployRequest) -> None:
        """
        Check the request before anything is downloaded.

        A rollback version that is not MAJOR.MINOR.PATCH is used as a path
        segment as-is; it is only rejected when strict_rollback_version is set.

        Raises:
            ArgumentError: If a rollback has no version, or strict mode rejects it
        """
        if request.operation is not Operation.ROLLBACK:
            return

        if not request.version:
            raise ArgumentError("Error: You must specify the software version for rollback.")

        if not is_release_version(request.version):
            if self.config.strict_rollback_version:
                raise ArgumentError(f"Error: Invalid software version '{request.version}'.")
            log_message(f"Warning: rollback version '{request.version}' is not a MAJOR.MINOR.PATCH "
                        f"version and is used as a path as given", "WARNING")

    def deploy(self, request: DeployRequest) -> DeploymentResult:
        """
        Run the full deployment for request.

        Returns:
            DeploymentResult: Completed steps, and the failing step if any
        """
        result = DeploymentResult(operation=request.operation.value)
        self._request = request
        self._latest_version = None
        self._selected_version = None

        try:
            self.validate_request(request)
        except ArgumentError as e:
            result.failed_step = "validate_request"
            result.error = str(e)
            log_message(str(e), "ERROR")
            return result

        log_message("Starting the application transfer...")
        self.runner.run(self.build_steps(), result)
        result.version = self._selected_version
        return result

    def build_steps(self) -> List[DeploymentStep]:
        """Return the deployment steps in execution order."""
        runtime_name = os.path.splitext(self.config.runtime_zip)[0]
        return [
            DeploymentStep("download_archive",
                           "Downloading the repository zip file from GitHub...",
                           self.download_archive),
            DeploymentStep("extract_archive",
                           "Extracting the repository zip file...",
                           self.extract_archive),
            DeploymentStep("validate_app_directory",
                           "Checking the application directory...",
                           self.validate_app_directory),
            DeploymentStep("create_directories",
                           "Creating directory structure...",
                           self.create_directories),
            DeploymentStep("stage_runtime",
                           f"Unzipping {runtime_name} file...",
                           self.stage_runtime),
            DeploymentStep("set_permissions",
                           "Setting 0775 permissions for runtimes and apps...",
                           self.set_permissions),
            DeploymentStep("install_scripts",
                           f"Copying scripts to {self.config.crank_root}...",
                           self.install_scripts),
            DeploymentStep("install_units",
                           "Copying and configuring services...",
                           self.install_units),
            DeploymentStep("remove_connection_handlers",
                           "Removing connection handlers...",
                           self.remove_connection_handlers),
            DeploymentStep("enable_services",
                           "Enabling services...",
                           self.enable_services),
            DeploymentStep("rename_display_unit",
                           "Renaming weston service...",
                           self.rename_display_unit),
            DeploymentStep("install_application",
                           "Installing the application files...",
                           self.install_application),
            DeploymentStep("replace_boot_logo",
                           "Changing the system boot logo...",
                           self.replace_boot_logo),
            DeploymentStep("cleanup",
                           "Removing temporary files...",
                           self.cleanup),
            DeploymentStep("reboot",
                           "Rebooting...",
                           self.reboot),
        ]

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def download_archive(self) -> None:
        self.fs.remove(self.config.download_file)
        try:
            self.fetcher.fetch(self.config.repo_url, self.config.download_file)
        except FetchError as e:
            log_message(str(e), "DEBUG")
            raise FetchError("Error: Failed to download repository zip file.") from e

    def extract_archive(self) -> None:
        self.fs.remove_tree(self.config.temp_dir)
        self.fs.make_dirs(self.config.temp_dir)
        try:
            self.extractor.extract(self.config.download_file, self.config.temp_dir)
        except ExtractionError as e:
            log_message(str(e), "DEBUG")
            raise ExtractionError("Error: Failed to extract repository zip file.") from e

    def validate_app_directory(self) -> None:
        app_path = self.config.app_path
        if not self.fs.is_dir(app_path):
            raise LayoutError(f"Error: Directory '{app_path}' does not exist.")

        self._latest_version = select_latest_version(self.fs.list_dir(app_path))
        if self._latest_version:
            log_message(f"Latest version available: {self._latest_version}", "DEBUG")

    # ------------------------------------------------------------------
    # Runtime, scripts and unit files
    # ------------------------------------------------------------------

    def create_directories(self) -> None:
        self.fs.make_dirs(self.config.apps_root, self.config.runtimes_dir, self.config.app_dest)

    def stage_runtime(self) -> None:
        runtime_archive = self.config.runtime_archive
        if not self.fs.is_file(runtime_archive):
            raise LayoutError("Error: ZIP file not found.")
        self.extractor.extract(runtime_archive, self.config.runtimes_dir)

    def set_permissions(self) -> None:
        self.permissions.set_permissions([
            PermissionTarget(path=self.config.runtimes_dir, mode=RUNTIME_MODE, recursive=True),
            PermissionTarget(path=self.config.apps_root, mode=RUNTIME_MODE, recursive=True),
        ])

    def install_scripts(self) -> None:
        scripts_dir = self.config.scripts_dir
        if not self.fs.is_dir(scripts_dir):
            raise LayoutError("Error: Scripts directory not found.")

        self.fs.copy_tree(scripts_dir, self.config.crank_root)
        self.permissions.set_permissions(
            directory_entry_targets(self.fs, self.config.crank_root, SCRIPTS_MODE)
        )

    def install_units(self) -> None:
        services_dir = self.config.services_dir
        if not self.fs.is_dir(services_dir):
            raise LayoutError("Error: Services directory not found.")

        for source_name, destination in self.config.service_mapping:
            source = os.path.join(services_dir, source_name)
            if not self.fs.is_file(source):
                log_message(f"Warning: {source} not found, skipping", "WARNING")
                continue
            if not self.fs.is_dir(destination):
                log_message(f"Warning: {destination} does not exist, skipping {source_name}", "WARNING")
                continue
            self.fs.copy_file(source, destination)
            self.permissions.set_permissions([PermissionTarget(path=destination, mode=UNIT_DIR_MODE)])

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def remove_connection_handlers(self) -> None:
        self.fs.remove(*self.config.resolver_files)
        self.services.stop(*self.config.connection_handlers)
        self.services.disable(*self.config.connection_handlers)

    def enable_services(self) -> None:
        if self.fs.exists(self.config.resolv_conf):
            log_message(f"Warning: {self.config.resolv_conf} already exists, not linking it", "WARNING")
        else:
            self.fs.symlink(self.config.resolved_resolv_conf, self.config.resolv_conf)
        self.services.stop(self.config.legacy_supplicant)
        self.services.disable(self.config.legacy_supplicant)
        self.services.daemon_reload()

        for service in self.config.services_to_enable:
            self.services.enable(service)
            self.services.start(service)

    def rename_display_unit(self) -> None:
        if self.fs.exists(self.config.display_unit):
            self.fs.rename(self.config.display_unit, self.config.display_unit_renamed)
            log_message("The weston service was renamed successfully.")
        else:
            log_message("The weston service file was already renamed.")

    # ------------------------------------------------------------------
    # Application, logo, cleanup
    # ------------------------------------------------------------------

    def install_application(self) -> None:
        request = self._request
        app_path = self.config.app_path

        if request.operation is Operation.UPDATE:
            log_message("Updating the application...")
            if not self._latest_version:
                raise VersionNotFoundError(f"No versions found in {app_path}")
            version = self._latest_version
        else:
            version = request.version
            log_message(f"Rolling back to version {version}...")

        # Joined as text: an absolute or dotted rollback version is not normalised away
        source = f"{app_path}/{version}"
        if not self.fs.is_dir(source):
            raise VersionNotFoundError(f"Error: Version directory '{source}' does not exist.")

        log_message(f"Copying version {version} to the apps directory...")
        self.fs.copy_tree(source, self.config.app_dest)
        self._selected_version = version
        log_message(f"Software version {version} {'updated' if request.operation is Operation.UPDATE else 'restored'}")

    def replace_boot_logo(self) -> None:
        boot_logo = self.config.boot_logo
        if not self.fs.is_file(boot_logo):
            raise LayoutError("Error: Boot logo file not found.")
        self.fs.copy_file(boot_logo, self.config.boot_logo_dest)

    def cleanup(self) -> None:
        self.fs.remove_tree(self.config.temp_dir, self.config.download_file)

    def reboot(self) -> None:
        self.services.reboot()
