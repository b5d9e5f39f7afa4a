"""Unit tests for uploads.py"""

import re

import httpx
import pytest

from ejpub.config import Settings
from ejpub.uploads import (
    ALLOWED_EXTENSIONS, UploadError, public_url, sniff_image_type, store_upload, store_upload_from_url, unique_name,
    validate_upload,
)


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MB = 1024 * 1024


@pytest.fixture(name="settings")
def settings_fixture(tmp_path):
    return Settings(upload_dir=str(tmp_path / "files"), base_url="https://example.com")


# --- validate_upload ---

@pytest.mark.parametrize("filename,mime", [
    ("photo.png", "image/png"),
    ("photo.PNG", "application/octet-stream"),
    ("photo", "image/webp"),
    ("photo.jpeg", "image/jpeg"),
])
def test_validate_upload_accepts_images(filename, mime):
    validate_upload(filename, mime, 10, MB)


@pytest.mark.parametrize("filename,mime", [
    ("notes.txt", "text/plain"),
    ("script", "application/javascript"),
    ("image.svg", "image/svg+xml"),
])
def test_validate_upload_rejects_non_images(filename, mime):
    with pytest.raises(UploadError, match=f"Only images are allowed. Detected: {re.escape(mime)}"):
        validate_upload(filename, mime, 10, MB)


def test_validate_upload_rejects_oversized():
    with pytest.raises(UploadError, match="File too large. Maximum size is 10MB."):
        validate_upload("big.png", "image/png", 10 * MB + 1, 10 * MB)


def test_validate_upload_size_ceiling_inclusive():
    validate_upload("edge.png", "image/png", 10 * MB, 10 * MB)


def test_upload_error_is_value_error():
    assert issubclass(UploadError, ValueError)


# --- unique_name ---

def test_unique_name_format():
    assert re.fullmatch(r"editorjs_[0-9a-f]{12}_\d+\.png", unique_name("cat.PNG", "image/png"))


def test_unique_name_extension_from_mime():
    assert unique_name("blob", "image/webp").endswith(".webp")


def test_unique_name_unknown_extension():
    assert unique_name("blob", "application/octet-stream").endswith(".bin")


def test_unique_name_differs_between_calls():
    assert unique_name("a.png", "image/png") != unique_name("a.png", "image/png")


@pytest.mark.parametrize("filename,mime", [
    ("shell.php", "image/png"),
    ("page.html", "image/jpeg"),
    ("archive.tar.gz", "image/gif"),
    ("x.php", "application/octet-stream"),
    ("photo.JPG", "text/plain"),
])
def test_unique_name_only_uses_image_extensions(filename, mime):
    assert unique_name(filename, mime).rsplit(".", 1)[1] in ALLOWED_EXTENSIONS | {"bin"}


def test_unique_name_replaces_script_extension_with_mime():
    assert unique_name("shell.php", "image/png").endswith(".png")


# --- public_url ---

def test_public_url_joins_base_and_files_path(settings):
    assert public_url("x.png", settings) == "https://example.com/sites/default/files/x.png"


def test_public_url_without_base():
    assert public_url("x.png", Settings()) == "/sites/default/files/x.png"


def test_public_url_without_files_path():
    settings = Settings(base_url="https://cdn.example.com/", files_path="")
    assert public_url("x.png", settings) == "https://cdn.example.com/x.png"


# --- store_upload ---

def test_store_upload_writes_file(settings, tmp_path):
    result = store_upload(PNG, "cat.png", "image/png", settings)
    assert result["success"] == 1
    assert result["size"] == len(PNG)
    assert result["url"] == f"https://example.com/sites/default/files/{result['name']}"
    assert (tmp_path / "files" / result["name"]).read_bytes() == PNG


def test_store_upload_rejects_type(settings, tmp_path):
    result = store_upload(b"hello", "notes.txt", "text/plain", settings)
    assert result == {"success": 0, "error": "Invalid file type. Only images are allowed. Detected: text/plain"}
    assert not (tmp_path / "files").exists()


def test_store_upload_rejects_size(tmp_path):
    settings = Settings(upload_dir=str(tmp_path / "files"), max_upload_bytes=4)
    result = store_upload(PNG, "cat.png", "image/png", settings)
    assert result["success"] == 0
    assert result["error"].startswith("File too large.")


def test_store_upload_never_keeps_script_extension(settings, tmp_path):
    """A declared image MIME type cannot smuggle an executable extension onto disk."""
    result = store_upload(b"<?php system($_GET['c']); ?>", "shell.php", "image/png", settings)
    assert result["success"] == 1
    assert result["name"].endswith(".png")
    assert not list((tmp_path / "files").glob("*.php"))


def test_store_upload_write_failure(tmp_path):
    """An unwritable upload directory yields a failure response, not an exception."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    settings = Settings(upload_dir=str(blocker / "files"))
    assert store_upload(PNG, "cat.png", "image/png", settings) == {"success": 0, "error": "Failed to save file"}


# --- sniff_image_type ---

@pytest.mark.parametrize("content,expected", [
    (PNG, "image/png"),
    (b"\xff\xd8\xff\xe0rest", "image/jpeg"),
    (b"GIF89a....", "image/gif"),
    (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
    (b"<html>not an image</html>", None),
    (b"", None),
])
def test_sniff_image_type(content, expected):
    assert sniff_image_type(content) == expected


# --- store_upload_from_url ---

def _client(status: int = 200, content: bytes = PNG) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(status, content=content)))


def test_store_upload_from_url_saves_download(settings, tmp_path):
    result = store_upload_from_url("https://images.example/cat", settings, client=_client())
    assert result["success"] == 1
    assert re.fullmatch(r"editorjs_url_[0-9a-f]{12}_\d+\.png", result["name"])
    assert (tmp_path / "files" / result["name"]).read_bytes() == PNG


@pytest.mark.parametrize("url,error", [
    ("", "No URL provided"),
    (None, "No URL provided"),
    ("not a url", "Invalid URL"),
    ("ftp://example.com/a.png", "Invalid URL"),
    ("https://", "Invalid URL"),
])
def test_store_upload_from_url_rejects_bad_url(settings, url, error):
    assert store_upload_from_url(url, settings, client=_client()) == {"success": 0, "error": error}


def test_store_upload_from_url_http_error(settings):
    result = store_upload_from_url("https://images.example/missing", settings, client=_client(status=404))
    assert result == {"success": 0, "error": "Failed to download image from URL"}


def test_store_upload_from_url_transport_error(settings):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(refuse))
    result = store_upload_from_url("https://images.example/cat", settings, client=client)
    assert result == {"success": 0, "error": "Failed to download image from URL"}


def test_store_upload_from_url_rejects_non_image(settings, tmp_path):
    result = store_upload_from_url("https://example.com/", settings, client=_client(content=b"<html></html>"))
    assert result == {"success": 0, "error": "Invalid image data"}
    assert not (tmp_path / "files").exists()


def test_store_upload_from_url_size_ceiling(tmp_path):
    settings = Settings(upload_dir=str(tmp_path / "files"), max_upload_bytes=8)
    result = store_upload_from_url("https://images.example/cat", settings, client=_client())
    assert result["success"] == 0
    assert result["error"].startswith("File too large.")


def _streaming_client(chunks: int, chunk_size: int, headers: dict = None) -> tuple[httpx.Client, list]:
    """Client serving chunks * chunk_size bytes of PNG-prefixed data; the list records each chunk sent."""
    sent = []

    def body():
        for i in range(chunks):
            sent.append(i)
            yield PNG.ljust(chunk_size, b"\x00") if i == 0 else b"\x00" * chunk_size

    def handler(request):
        return httpx.Response(200, headers=headers, content=body())

    return httpx.Client(transport=httpx.MockTransport(handler)), sent


def test_store_upload_from_url_stops_reading_oversized_stream(tmp_path):
    """Without a Content-Length, the download is abandoned once the ceiling is passed."""
    settings = Settings(upload_dir=str(tmp_path / "files"), max_upload_bytes=4 * 1024)
    client, sent = _streaming_client(chunks=100, chunk_size=1024)
    result = store_upload_from_url("https://images.example/huge", settings, client=client)
    assert result["success"] == 0
    assert result["error"].startswith("File too large.")
    assert len(sent) < 100
    assert not (tmp_path / "files").exists()


def test_store_upload_from_url_rejects_declared_length_before_reading(tmp_path):
    settings = Settings(upload_dir=str(tmp_path / "files"), max_upload_bytes=4 * 1024)
    client, sent = _streaming_client(chunks=100, chunk_size=1024, headers={"Content-Length": str(100 * 1024)})
    result = store_upload_from_url("https://images.example/huge", settings, client=client)
    assert result["success"] == 0
    assert result["error"].startswith("File too large.")
    assert sent == []


def test_store_upload_from_url_streamed_within_ceiling(settings, tmp_path):
    client, sent = _streaming_client(chunks=4, chunk_size=1024)
    result = store_upload_from_url("https://images.example/cat", settings, client=client)
    assert result["success"] == 1
    assert result["size"] == 4 * 1024
    assert len(sent) == 4
