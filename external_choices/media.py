"""
Local media library: files uploaded to this site and served under a URL prefix.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)


class MediaLibrary:
    """Maps media ids and media URLs to files under ``root``."""

    def __init__(self, root: Optional[Union[str, Path]] = None, base_url: str = "") -> None:
        self.root = Path(root).resolve() if root else None
        self.base_url = base_url.rstrip("/")

    def _inside_root(self, relative: str) -> Optional[Path]:
        if self.root is None or not relative:
            return None

        candidate = (self.root / relative).resolve()
        if candidate == self.root or self.root not in candidate.parents:
            logger.warning("Rejected media path outside library: %s", relative)
            return None
        return candidate

    def url_for(self, media_id: str) -> Optional[str]:
        media_id = media_id.strip().lstrip("/")
        path = self._inside_root(media_id)
        if path is None or not path.is_file() or not self.base_url:
            return None
        return f"{self.base_url}/{media_id}"

    def path_for(self, locator: str) -> Optional[Path]:
        """Filesystem path for a media URL, or None if the URL is not ours."""
        if self.root is None or not self.base_url:
            return None

        prefix = self.base_url + "/"
        if not locator.startswith(prefix):
            return None

        relative = unquote(urlsplit(locator[len(prefix):]).path)
        return self._inside_root(relative)
