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
Combi oven update system.

Updates or rolls back the Storyboard application on the combi oven's Forlinx
board from the usb_combioven repository archive, reinstalls runtime, scripts
and unit files, and reboots the board.
"""

from .config import DeployConfig, load_config
from .deployer import Deployer, DeployRequest, Operation
from .errors import (
    DeployError,
    ArgumentError,
    ConfigError,
    FetchError,
    ExtractionError,
    LayoutError,
    VersionNotFoundError,
    ServiceError
)
from .steps import DeploymentResult, DeploymentStep, StepRunner
from .utils.index import log_message

__version__ = "1.0.0"

__all__ = [
    'DeployConfig',
    'load_config',
    'Deployer',
    'DeployRequest',
    'Operation',
    'DeploymentResult',
    'DeploymentStep',
    'StepRunner',
    'DeployError',
    'ArgumentError',
    'ConfigError',
    'FetchError',
    'ExtractionError',
    'LayoutError',
    'VersionNotFoundError',
    'ServiceError',
    'log_message'
]
