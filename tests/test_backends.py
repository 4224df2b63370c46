"""
Tests for the local storage backend and the request handlers built on it.
"""

import pytest
from fastapi import HTTPException

from nostore.backends.local import LocalBackend
from nostore.core.content_types import content_type_for_path, get_content_type
from nostore.core.handlers import ReadHandler, WriteHandler


async def _chunks(*parts):
    for part in parts:
        yield part


async def _broken_stream():
    yield b"partial "
    raise ConnectionResetError("client went away")


# ===== LOCAL BACKEND =====

@pytest.mark.unit
class TestLocalBackend:

    def test_creates_storage_dir(self, storage_dir):
        assert not storage_dir.exists()
        LocalBackend(storage_dir)
        assert storage_dir.is_dir()

    def test_resolve_under_root(self, backend, storage_dir):
        assert backend.resolve("/abc") == storage_dir.resolve() / "abc"
        assert backend.resolve("//abc//def/") == storage_dir.resolve() / "abc" / "def"

    @pytest.mark.parametrize("path", ["/../outside", "/a/../../outside", "/.."])
    def test_resolve_rejects_escape(self, backend, path):
        with pytest.raises(ValueError):
            backend.resolve(path)

    @pytest.mark.asyncio
    async def test_write_and_read(self, backend):
        await backend.ensure_parent("/abc")
        written = await backend.write_stream("/abc", _chunks(b"hello ", b"", b"world"))

        assert written == 11
        assert await backend.read("/abc") == b"hello world"

    @pytest.mark.asyncio
    async def test_write_overwrites(self, backend):
        await backend.write_stream("/abc", _chunks(b"first version"))
        await backend.write_stream("/abc", _chunks(b"second"))

        assert await backend.read("/abc") == b"second"

    @pytest.mark.asyncio
    async def test_ensure_parent_creates_nested_dirs(self, backend, storage_dir):
        await backend.ensure_parent("/a/b/c/file.txt")

        assert (storage_dir / "a" / "b" / "c").is_dir()

    @pytest.mark.asyncio
    async def test_failed_stream_leaves_no_file(self, backend, storage_dir):
        await backend.write_stream("/abc", _chunks(b"original"))

        with pytest.raises(ConnectionResetError):
            await backend.write_stream("/abc", _broken_stream())

        assert await backend.read("/abc") == b"original"
        assert [p.name for p in storage_dir.iterdir()] == ["abc"]

    @pytest.mark.asyncio
    async def test_read_missing(self, backend):
        with pytest.raises(FileNotFoundError):
            await backend.read("/missing")

    @pytest.mark.asyncio
    async def test_read_directory(self, backend, storage_dir):
        (storage_dir / "dir").mkdir()

        with pytest.raises(FileNotFoundError):
            await backend.read("/dir")

    @pytest.mark.asyncio
    async def test_read_outside_root(self, backend, storage_dir):
        (storage_dir.parent / "secret").write_bytes(b"nope")

        with pytest.raises(FileNotFoundError):
            await backend.read("/../secret")


# ===== CONTENT TYPES =====

@pytest.mark.unit
class TestContentTypes:

    @pytest.mark.parametrize(
        "ext,expected",
        [
            (".txt", "text/plain"),
            (".html", "text/html"),
            (".json", "application/json"),
            (".png", "application/octet-stream"),
            ("", "application/octet-stream"),
        ],
    )
    def test_get_content_type(self, ext, expected):
        assert get_content_type(ext) == expected

    def test_content_type_for_path(self):
        assert content_type_for_path("/abc/notes.json") == "application/json"
        assert content_type_for_path("/abc") == "application/octet-stream"
        assert content_type_for_path("/abc/archive.tar.txt") == "text/plain"


# ===== HANDLERS =====

@pytest.mark.unit
class TestWriteHandler:

    @pytest.mark.asyncio
    async def test_created(self, backend, alice, alice_auth):
        response = await WriteHandler(backend).handle(f"/{alice}", alice_auth, _chunks(b"hello"))

        assert response.status_code == 201
        assert await backend.read(f"/{alice}") == b"hello"

    @pytest.mark.asyncio
    async def test_missing_header(self, backend, alice):
        with pytest.raises(HTTPException) as exc_info:
            await WriteHandler(backend).handle(f"/{alice}", None, _chunks(b"hello"))

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_pubkey(self, backend, bob, alice_auth):
        with pytest.raises(HTTPException) as exc_info:
            await WriteHandler(backend).handle(f"/{bob}", alice_auth, _chunks(b"hello"))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Forbidden: wrong pubkey"

    @pytest.mark.asyncio
    async def test_nested_path(self, backend, alice, alice_auth):
        with pytest.raises(HTTPException) as exc_info:
            await WriteHandler(backend).handle(f"/{alice}/notes.json", alice_auth, _chunks(b"{}"))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Forbidden: target directory structure is invalid"

    @pytest.mark.asyncio
    async def test_directory_failure(self, backend, alice, alice_auth, monkeypatch):
        async def fail(request_path):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr(backend, "ensure_parent", fail)

        with pytest.raises(HTTPException) as exc_info:
            await WriteHandler(backend).handle(f"/{alice}", alice_auth, _chunks(b"hello"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Error creating directory"

    @pytest.mark.asyncio
    async def test_stream_failure(self, backend, alice, alice_auth):
        with pytest.raises(HTTPException) as exc_info:
            await WriteHandler(backend).handle(f"/{alice}", alice_auth, _broken_stream())

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Error writing file"

        with pytest.raises(FileNotFoundError):
            await backend.read(f"/{alice}")


@pytest.mark.unit
class TestReadHandler:

    @pytest.mark.asyncio
    async def test_found(self, backend, storage_dir):
        (storage_dir / "page.html").write_bytes(b"<p>hi</p>")

        response = await ReadHandler(backend).handle("/page.html")

        assert response.status_code == 200
        assert response.body == b"<p>hi</p>"
        assert response.headers["content-type"] == "text/html"

    @pytest.mark.asyncio
    async def test_missing(self, backend):
        with pytest.raises(HTTPException) as exc_info:
            await ReadHandler(backend).handle("/missing")

        assert exc_info.value.status_code == 404
