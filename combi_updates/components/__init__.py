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
Deployment Components

Collaborators the deployer drives: archive download, archive extraction,
filesystem operations and service management. Each is a small interface with
a host implementation.
"""

from .fetcher import ArchiveFetcher, RequestsArchiveFetcher
from .extractor import ArchiveExtractor, ZipArchiveExtractor
from .file_operations import FileSystemOps, LocalFileSystem
from .services import ServiceManager, SystemdServiceManager

__all__ = [
    'ArchiveFetcher',
    'RequestsArchiveFetcher',
    'ArchiveExtractor',
    'ZipArchiveExtractor',
    'FileSystemOps',
    'LocalFileSystem',
    'ServiceManager',
    'SystemdServiceManager'
]
