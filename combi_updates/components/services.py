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
Service manager control.

The unit enable/start/stop calls are best-effort: a failing systemctl call is
logged and the deployment carries on. Only the final reboot must succeed.
"""

import subprocess
from typing import List, Sequence

from ..errors import ServiceError
from ..utils.index import log_message


class ServiceManager:
    """Interface for controlling system services and the host."""

    def stop(self, *units: str) -> bool:
        raise NotImplementedError("Subclasses must implement stop()")

    def disable(self, *units: str) -> bool:
        raise NotImplementedError("Subclasses must implement disable()")

    def enable(self, *units: str) -> bool:
        raise NotImplementedError("Subclasses must implement enable()")

    def start(self, *units: str) -> bool:
        raise NotImplementedError("Subclasses must implement start()")

    def daemon_reload(self) -> bool:
        raise NotImplementedError("Subclasses must implement daemon_reload()")

    def reboot(self) -> None:
        """
        Reboot the host.

        Raises:
            ServiceError: If the reboot command could not be issued
        """
        raise NotImplementedError("Subclasses must implement reboot()")


class SystemdServiceManager(ServiceManager):
    """ServiceManager that shells out to systemctl and reboot."""

    def __init__(self, systemctl: str = "systemctl",
                 reboot_command: Sequence[str] = ("reboot",)):
        self.systemctl_bin = systemctl
        self.reboot_command = list(reboot_command)

    def _systemctl(self, action: str, units: Sequence[str] = ()) -> bool:
        cmd: List[str] = [self.systemctl_bin, action, *units]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            log_message(f"{' '.join(cmd)} error: {e}", "WARNING")
            return False

        if result.returncode != 0:
            log_message(f"{' '.join(cmd)} failed: {result.stderr.strip()}", "WARNING")
            return False
        return True

    def stop(self, *units: str) -> bool:
        return self._systemctl("stop", units)

    def disable(self, *units: str) -> bool:
        return self._systemctl("disable", units)

    def enable(self, *units: str) -> bool:
        return self._systemctl("enable", units)

    def start(self, *units: str) -> bool:
        return self._systemctl("start", units)

    def daemon_reload(self) -> bool:
        return self._systemctl("daemon-reload")

    def reboot(self) -> None:
        try:
            result = subprocess.run(self.reboot_command, capture_output=True, text=True)
        except OSError as e:
            raise ServiceError(f"Failed to run {' '.join(self.reboot_command)}: {e}") from e

        if result.returncode != 0:
            raise ServiceError(f"Reboot failed: {result.stderr.strip()}")
