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
Permission Management Utilities

Applies file and directory modes to the deployed trees. Modes are applied
through a FileSystemOps collaborator so the same targets can be exercised
against a scratch directory in tests.
"""

from typing import List, Union
from dataclasses import dataclass

from .index import log_message


@dataclass
class PermissionTarget:
    """Represents a file or directory with its desired mode."""
    path: str
    mode: Union[str, int]  # Can be octal string like "775" or int like 0o775
    recursive: bool = False  # Apply mode to everything below a directory

    def __post_init__(self):
        """Convert mode to integer if it's a string."""
        if isinstance(self.mode, str):
            # int(x, 8) accepts both "775" and "0o775"
            self.mode = int(self.mode, 8)


class PermissionManager:
    """Applies modes for a list of PermissionTarget objects."""

    def __init__(self, fs):
        self.fs = fs

    def set_permissions(self, targets: List[PermissionTarget]) -> int:
        """
        Set modes for multiple targets.

        Args:
            targets: List of PermissionTarget objects

        Returns:
            int: Number of targets that existed and were updated

        Raises:
            OSError: If the filesystem refuses a mode change
        """
        if not targets:
            log_message("No permission targets specified", "WARNING")
            return 0

        applied = 0
        for target in targets:
            if self._set_single_permission(target):
                applied += 1

        log_message(f"Applied permissions to {applied}/{len(targets)} targets", "DEBUG")
        return applied

    def _set_single_permission(self, target: PermissionTarget) -> bool:
        """Set the mode for a single target."""
        if not self.fs.exists(target.path):
            log_message(f"Skipping {target.path} - does not exist", "DEBUG")
            return False

        self.fs.set_mode(target.path, target.mode, recursive=target.recursive)
        log_message(f"Set permissions for {target.path} ({oct(target.mode)})", "DEBUG")
        return True


def directory_entry_targets(fs, directory: str, mode: int) -> List[PermissionTarget]:
    """
    Build non-recursive targets for every entry directly inside a directory.

    Mirrors ``chmod 775 /usr/crank/*``: the entries get the mode, their
    contents do not.

    Args:
        fs: FileSystemOps used to list the directory
        directory: Directory whose entries are targeted
        mode: Mode to apply

    Returns:
        List[PermissionTarget]: One target per entry, in name order
    """
    return [
        PermissionTarget(path=entry, mode=mode)
        for entry in fs.list_dir(directory, full_paths=True)
    ]
