"""Image upload validation and local storage for the editor's image tool"""

import logging
import secrets
import time
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import httpx

from ejpub.config import Settings


logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {'image/jpeg', 'image/png', 'image/gif', 'image/webp'}
ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}
MIME_EXTENSIONS = {'image/jpeg': 'jpg', 'image/png': 'png', 'image/gif': 'gif', 'image/webp': 'webp'}

IMAGE_SIGNATURES = (
    (b'\xff\xd8\xff', 'image/jpeg'),
    (b'\x89PNG\r\n\x1a\n', 'image/png'),
    (b'GIF87a', 'image/gif'),
    (b'GIF89a', 'image/gif'),
)


class UploadError(ValueError):
    """Raised when an uploaded file is rejected."""


def _extension(filename: str) -> str:
    return Path(filename).suffix.lstrip('.').lower()


def _too_large(max_bytes: int) -> str:
    return f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."


def validate_upload(filename: str, mime_type: str, size: int, max_bytes: int) -> None:
    """Raise UploadError unless the file looks like an image within the size ceiling.

    A file passes the type check if either its MIME type or its extension is allowed.
    """
    if mime_type not in ALLOWED_MIME_TYPES and _extension(filename) not in ALLOWED_EXTENSIONS:
        raise UploadError(f"Invalid file type. Only images are allowed. Detected: {mime_type}")
    if size > max_bytes:
        raise UploadError(_too_large(max_bytes))


def unique_name(filename: str, mime_type: str, prefix: str = 'editorjs') -> str:
    """Return <prefix>_<hex>_<unix time>.<ext>.

    The filename's extension is kept only if it is an allowed image extension;
    otherwise ext comes from the MIME type.
    """
    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        ext = MIME_EXTENSIONS.get(mime_type, 'bin')
    return f"{prefix}_{secrets.token_hex(6)}_{int(time.time())}.{ext}"


def public_url(name: str, settings: Settings) -> str:
    """Public URL of a stored upload under the configured files path."""
    files = settings.files_path.strip('/')
    prefix = f"{settings.base_url.rstrip('/')}/{files}" if files else settings.base_url.rstrip('/')
    return f"{prefix}/{name}"


def _save(content: bytes, name: str, settings: Settings) -> dict[str, Any]:
    upload_dir = Path(settings.upload_dir)
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / name).write_bytes(content)
    except OSError as e:
        logger.error("Failed to save upload %s: %s", name, e)
        return {"success": 0, "error": "Failed to save file"}

    logger.info("Stored upload %s (%d bytes)", name, len(content))
    return {"success": 1, "url": public_url(name, settings), "name": name, "size": len(content)}


def store_upload(content: bytes, filename: str, mime_type: str, settings: Settings) -> dict[str, Any]:
    """Validate and write an uploaded image; return the image tool's response mapping.

    Success: {"success": 1, "url", "name", "size"}. Failure: {"success": 0, "error"}.
    """
    try:
        validate_upload(filename, mime_type, len(content), settings.max_upload_bytes)
    except UploadError as e:
        logger.info("Rejected upload %r: %s", filename, e)
        return {"success": 0, "error": str(e)}
    return _save(content, unique_name(filename, mime_type), settings)


def sniff_image_type(content: bytes) -> str | None:
    """MIME type of an allowed image format recognized by its magic bytes, else None."""
    for signature, mime_type in IMAGE_SIGNATURES:
        if content.startswith(signature):
            return mime_type
    if content[:4] == b'RIFF' and content[8:12] == b'WEBP':
        return 'image/webp'
    return None


def _is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ('http', 'https') and bool(parts.netloc)


def _download(client: httpx.Client, url: str, max_bytes: int) -> bytes:
    """Stream url into memory, raising UploadError as soon as it exceeds max_bytes."""
    with client.stream('GET', url) as response:
        response.raise_for_status()
        declared = response.headers.get('content-length', '')
        if declared.isdigit() and int(declared) > max_bytes:
            raise UploadError(_too_large(max_bytes))
        content = bytearray()
        for chunk in response.iter_bytes():
            content.extend(chunk)
            if len(content) > max_bytes:
                raise UploadError(_too_large(max_bytes))
    return bytes(content)


def store_upload_from_url(url: Any, settings: Settings, client: httpx.Client = None) -> dict[str, Any]:
    """Download an image by URL and store it like a file upload.

    The payload itself must be a recognizable image; the server's declared
    content type is not trusted. Pass client to reuse a connection pool.
    """
    if not url or not isinstance(url, str):
        return {"success": 0, "error": "No URL provided"}
    if not _is_http_url(url):
        return {"success": 0, "error": "Invalid URL"}

    max_bytes = settings.max_upload_bytes
    try:
        if client is None:
            with httpx.Client(timeout=settings.fetch_timeout, follow_redirects=True) as own:
                content = _download(own, url, max_bytes)
        else:
            content = _download(client, url, max_bytes)
    except httpx.HTTPError as e:
        logger.info("Download of %s failed: %s", url, e)
        return {"success": 0, "error": "Failed to download image from URL"}
    except UploadError as e:
        logger.info("Rejected download of %s: %s", url, e)
        return {"success": 0, "error": str(e)}

    mime_type = sniff_image_type(content)
    if mime_type is None:
        return {"success": 0, "error": "Invalid image data"}
    return _save(content, unique_name('', mime_type, prefix='editorjs_url'), settings)
