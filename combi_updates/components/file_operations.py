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
Filesystem operations used while staging and installing a release.

FileSystemOps is the capability set the deployer relies on. LocalFileSystem
performs the operations directly on the host; the deployer runs as root on
the board, so no privilege escalation is done here.
"""

import os
import shutil
from typing import List

from ..utils.index import log_message


class FileSystemOps:
    """Interface for filesystem operations (local host or test doubles)."""

    def exists(self, path: str) -> bool:
        raise NotImplementedError("Subclasses must implement exists()")

    def is_dir(self, path: str) -> bool:
        raise NotImplementedError("Subclasses must implement is_dir()")

    def is_file(self, path: str) -> bool:
        raise NotImplementedError("Subclasses must implement is_file()")

    def list_dir(self, path: str, full_paths: bool = False) -> List[str]:
        raise NotImplementedError("Subclasses must implement list_dir()")

    def make_dirs(self, *paths: str) -> None:
        raise NotImplementedError("Subclasses must implement make_dirs()")

    def remove(self, *paths: str) -> None:
        """Remove files or links, ignoring paths that do not exist."""
        raise NotImplementedError("Subclasses must implement remove()")

    def remove_tree(self, *paths: str) -> None:
        """Remove directories (or files) recursively, ignoring missing paths."""
        raise NotImplementedError("Subclasses must implement remove_tree()")

    def copy_file(self, source: str, destination: str) -> None:
        """Copy one file; destination may be a directory."""
        raise NotImplementedError("Subclasses must implement copy_file()")

    def copy_tree(self, source: str, destination: str) -> int:
        """Copy the entries of source into destination, overwriting by path."""
        raise NotImplementedError("Subclasses must implement copy_tree()")

    def set_mode(self, path: str, mode: int, recursive: bool = False) -> None:
        raise NotImplementedError("Subclasses must implement set_mode()")

    def symlink(self, target: str, link_path: str) -> None:
        raise NotImplementedError("Subclasses must implement symlink()")

    def rename(self, source: str, destination: str) -> None:
        raise NotImplementedError("Subclasses must implement rename()")


class LocalFileSystem(FileSystemOps):
    """FileSystemOps backed by os and shutil on the local host."""

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def list_dir(self, path: str, full_paths: bool = False) -> List[str]:
        names = sorted(os.listdir(path))
        if full_paths:
            return [os.path.join(path, name) for name in names]
        return names

    def make_dirs(self, *paths: str) -> None:
        for path in paths:
            os.makedirs(path, exist_ok=True)

    def remove(self, *paths: str) -> None:
        for path in paths:
            if os.path.lexists(path):
                os.remove(path)

    def remove_tree(self, *paths: str) -> None:
        for path in paths:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            elif os.path.lexists(path):
                os.remove(path)

    def copy_file(self, source: str, destination: str) -> None:
        shutil.copy(source, destination)

    def copy_tree(self, source: str, destination: str) -> int:
        """
        Copy every top-level entry of source into destination.

        Behaves like ``cp -f -r source/* destination``: existing files are
        overwritten, files already in destination that source does not have
        are left alone, and top-level dotfiles are not matched.

        Args:
            source: Directory whose entries are copied
            destination: Existing directory receiving the entries

        Returns:
            int: Number of files copied
        """
        files_copied = 0
        for name in sorted(os.listdir(source)):
            if name.startswith('.'):
                continue

            src_path = os.path.join(source, name)
            dst_path = os.path.join(destination, name)

            if os.path.isdir(src_path) and not os.path.islink(src_path):
                files_copied += sum(len(files) for _root, _dirs, files in os.walk(src_path))
                shutil.copytree(src_path, dst_path, symlinks=True,
                                copy_function=shutil.copy, dirs_exist_ok=True)
            else:
                if os.path.islink(src_path) and os.path.lexists(dst_path):
                    os.remove(dst_path)
                shutil.copy(src_path, dst_path, follow_symlinks=False)
                files_copied += 1

        log_message(f"Copied {files_copied} files from {source} to {destination}", "DEBUG")
        return files_copied

    def set_mode(self, path: str, mode: int, recursive: bool = False) -> None:
        os.chmod(path, mode)
        if not recursive or not os.path.isdir(path) or os.path.islink(path):
            return

        # chmod -R leaves symlinks found during the walk alone
        for root, dirs, files in os.walk(path):
            for name in dirs + files:
                entry = os.path.join(root, name)
                if not os.path.islink(entry):
                    os.chmod(entry, mode)

    def symlink(self, target: str, link_path: str) -> None:
        os.symlink(target, link_path)

    def rename(self, source: str, destination: str) -> None:
        os.rename(source, destination)
