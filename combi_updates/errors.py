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
Exceptions raised while deploying a release.

Every failure that should abort a run derives from DeployError. The step
runner stops at the first one it sees and the CLI turns it into exit status 1.
"""


class DeployError(Exception):
    """Base exception for deployment failures."""
    pass


class ArgumentError(DeployError):
    """The command line did not name a valid operation or version."""
    pass


class ConfigError(DeployError):
    """Configuration overrides could not be loaded."""
    pass


class FetchError(DeployError):
    """The repository archive could not be downloaded."""
    pass


class ExtractionError(DeployError):
    """An archive could not be extracted."""
    pass


class LayoutError(DeployError):
    """A path the staged archive must provide is missing."""
    pass


class VersionNotFoundError(LayoutError):
    """No usable release version directory exists in the staged archive."""
    pass


class ServiceError(DeployError):
    """A service manager command that must succeed failed."""
    pass
