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
Download of the repository archive.
"""

from typing import Optional

import requests

from ..errors import FetchError
from ..utils.index import log_message

CHUNK_SIZE = 64 * 1024


class ArchiveFetcher:
    """Interface for fetching a remote archive to a local file."""

    def fetch(self, url: str, destination: str) -> None:
        """
        Download url to destination.

        Raises:
            FetchError: If the archive could not be downloaded
        """
        raise NotImplementedError("Subclasses must implement fetch()")


class RequestsArchiveFetcher(ArchiveFetcher):
    """Streams an archive over HTTP(S) with requests, following redirects."""

    def __init__(self, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str, destination: str) -> None:
        log_message(f"Fetching {url}", "DEBUG")
        try:
            with self.session.get(url, stream=True, timeout=self.timeout, allow_redirects=True) as response:
                response.raise_for_status()
                bytes_written = 0
                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            bytes_written += len(chunk)
        except requests.RequestException as e:
            raise FetchError(f"Failed to download {url}: {e}") from e
        except OSError as e:
            raise FetchError(f"Failed to write {destination}: {e}") from e

        log_message(f"Downloaded {bytes_written} bytes to {destination}", "DEBUG")
