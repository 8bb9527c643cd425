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
Utilities for the combi oven update system.

This module provides common utilities used by the deployer and its components.
"""

from .index import log_message, LOGGER_NAME
from .versions import (
    VERSION_PATTERN,
    is_release_version,
    sort_versions,
    select_latest_version
)
from .permissions import (
    PermissionManager,
    PermissionTarget,
    directory_entry_targets
)

__all__ = [
    'log_message',
    'LOGGER_NAME',
    'VERSION_PATTERN',
    'is_release_version',
    'sort_versions',
    'select_latest_version',
    'PermissionManager',
    'PermissionTarget',
    'directory_entry_targets'
]
