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
Release version helpers.

Release directories in the staged archive are named after the version they
carry (``app/1.5.2``). Only names of the form MAJOR.MINOR.PATCH count as
releases and they are ordered numerically, so 10.0.1 sorts after 2.0.0.
"""

import re
from typing import Iterable, List, Optional

from packaging import version

from .index import log_message

VERSION_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+")


def is_release_version(name: str) -> bool:
    """Return True if name is a MAJOR.MINOR.PATCH version string."""
    return VERSION_PATTERN.fullmatch(name) is not None


def sort_versions(names: Iterable[str]) -> List[str]:
    """
    Filter names down to release versions and sort them in ascending order.

    Args:
        names: Directory names, in any order

    Returns:
        List[str]: Matching names ordered by numeric version
    """
    releases = [name for name in names if is_release_version(name)]
    return sorted(releases, key=version.Version)


def select_latest_version(names: Iterable[str]) -> Optional[str]:
    """
    Pick the highest release version out of a list of directory names.

    Args:
        names: Directory names found in the app directory

    Returns:
        Optional[str]: The latest version, or None if no name is a release
    """
    releases = sort_versions(names)
    if not releases:
        log_message("No release version directories found", "DEBUG")
        return None
    return releases[-1]
