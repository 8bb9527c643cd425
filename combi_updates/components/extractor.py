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
ZIP extraction for the repository archive and the bundled runtime.
"""

import os
import stat
import zipfile

from ..errors import ExtractionError
from ..utils.index import log_message

# ZipInfo.create_system value for archives built on Unix
UNIX_CREATOR = 3


class ArchiveExtractor:
    """Interface for unpacking an archive into a directory."""

    def extract(self, archive: str, destination: str) -> int:
        """
        Extract archive into destination, overwriting existing files.

        Returns:
            int: Number of members extracted

        Raises:
            ExtractionError: If the archive is missing or unreadable
        """
        raise NotImplementedError("Subclasses must implement extract()")


class ZipArchiveExtractor(ArchiveExtractor):
    """Extracts ZIP archives with zipfile, restoring Unix permission bits and symlinks like unzip does."""

    def extract(self, archive: str, destination: str) -> int:
        try:
            with zipfile.ZipFile(archive, 'r') as zip_ref:
                members = zip_ref.infolist()
                for member in members:
                    if self._is_symlink(member):
                        self._extract_symlink(zip_ref, member, destination)
                        continue
                    extracted_path = zip_ref.extract(member, destination)
                    self._restore_mode(member, extracted_path)
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ExtractionError(f"Invalid archive {archive}: {e}") from e
        except (NotImplementedError, RuntimeError) as e:
            # Unsupported compression method or an encrypted member
            raise ExtractionError(f"Cannot extract {archive}: {e}") from e
        except OSError as e:
            raise ExtractionError(f"Failed to extract {archive}: {e}") from e

        log_message(f"Extracted {len(members)} entries from {archive}", "DEBUG")
        return len(members)

    def _is_symlink(self, member: zipfile.ZipInfo) -> bool:
        return member.create_system == UNIX_CREATOR and stat.S_ISLNK(member.external_attr >> 16)

    def _member_path(self, member: zipfile.ZipInfo, destination: str) -> str:
        # Same sanitising as ZipFile.extract: no absolute paths, no '..'
        parts = [part for part in member.filename.split('/') if part not in ('', '.', '..')]
        if not parts:
            raise ExtractionError(f"Invalid member name {member.filename!r}")
        return os.path.join(destination, *parts)

    def _extract_symlink(self, zip_ref: zipfile.ZipFile, member: zipfile.ZipInfo,
                         destination: str) -> None:
        link_path = self._member_path(member, destination)
        target = os.fsdecode(zip_ref.read(member))

        os.makedirs(os.path.dirname(link_path), exist_ok=True)
        if os.path.lexists(link_path):
            os.remove(link_path)
        os.symlink(target, link_path)

    def _restore_mode(self, member: zipfile.ZipInfo, extracted_path: str) -> None:
        if member.create_system != UNIX_CREATOR:
            return
        mode = stat.S_IMODE(member.external_attr >> 16)
        if mode:
            os.chmod(extracted_path, mode)
