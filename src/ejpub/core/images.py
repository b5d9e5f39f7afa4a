"""Image rendition URL resolution for image blocks"""

import logging
from typing import Protocol
from urllib.parse import urlsplit


logger = logging.getLogger(__name__)

IMAGE_SIZES = ('thumbnail', 'medium', 'large')
DEFAULT_IMAGE_SIZE = 'large'


def normalize_size(size) -> str:
    """Return size if it names a known rendition tier, else the default tier."""
    return size if size in IMAGE_SIZES else DEFAULT_IMAGE_SIZE


class ImageUrlResolver(Protocol):
    """Maps an uploaded image's canonical URL to the URL of a sized rendition."""

    def resolve(self, url: str, size: str) -> str:
        ...


class OriginalUrlResolver:
    """Resolver that serves every size from the original upload."""

    def resolve(self, url: str, size: str) -> str:
        return url


class StyledUrlResolver:
    """Build public image-style URLs: {base}/{files_path}/styles/{size}/public/{path}.

    base_url defaults to the scheme and host of the source URL. A source path
    already under files_path is made relative to it. URLs without a path are
    returned unchanged.
    """

    def __init__(self, base_url: str = '', files_path: str = 'sites/default/files'):
        self.base_url = base_url.rstrip('/')
        self.files_path = files_path.strip('/')

    def _relative_path(self, path: str) -> str:
        path = path.lstrip('/')
        prefix = f"{self.files_path}/"
        if self.files_path and path.startswith(prefix):
            path = path[len(prefix):]
        return path

    def resolve(self, url: str, size: str) -> str:
        try:
            parts = urlsplit(url)
        except ValueError:
            logger.debug("Unparseable image URL %r; serving original", url)
            return url
        path = self._relative_path(parts.path)
        if not path:
            return url

        base = self.base_url
        if not base and parts.netloc:
            base = f"{parts.scheme or 'https'}://{parts.netloc}"
        files = f"/{self.files_path}" if self.files_path else ''
        return f"{base}{files}/styles/{normalize_size(size)}/public/{path}"
