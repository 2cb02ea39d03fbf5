"""
Raw content retrieval from the media library or a remote URL.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import httpx

from .config import Settings
from .errors import FileNotFound, FileTooLarge, HttpStatusError, NetworkError, NoSource, ReadFailed
from .media import MediaLibrary
from .models import DataFormat

logger = logging.getLogger(__name__)


def detect_format(locator: str) -> Optional[DataFormat]:
    """Format from the URL path's extension only; the content is never sniffed."""
    path = urlsplit(locator).path
    extension = path.rsplit(".", 1)[-1].lower() if "." in path.rsplit("/", 1)[-1] else ""

    try:
        return DataFormat(extension)
    except ValueError:
        return None


class ContentFetcher:
    def __init__(
        self,
        settings: Settings,
        media_library: MediaLibrary,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings
        self.media_library = media_library
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=settings.fetch_timeout,
            verify=True,
            follow_redirects=True,
        )

    @property
    def max_file_size(self) -> int:
        return self.settings.max_file_size

    def fetch(self, locator: str) -> bytes:
        if not locator:
            raise NoSource("URL is empty.")

        path = self.media_library.path_for(locator)
        if path is not None:
            return self.fetch_from_media(path)

        return self.fetch_from_url(locator)

    def fetch_from_url(self, url: str) -> bytes:
        logger.debug("Fetching %s", url)
        try:
            response = self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        if response.status_code != 200:
            raise HttpStatusError(response.status_code)

        body = response.content
        if len(body) > self.max_file_size:
            raise FileTooLarge(self.max_file_size)

        return body

    def fetch_from_media(self, path: Path) -> bytes:
        logger.debug("Reading media file %s", path)
        if not path.is_file():
            raise FileNotFound()

        # size check happens before the read
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise ReadFailed() from exc
        if size > self.max_file_size:
            raise FileTooLarge(self.max_file_size)

        try:
            return path.read_bytes()
        except OSError as exc:
            raise ReadFailed() from exc

    detect_format = staticmethod(detect_format)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
