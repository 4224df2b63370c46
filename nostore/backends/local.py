"""
Local filesystem storage backend.

Stores each file at ``storage_dir/<request path>``.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import AsyncIterable

logger = logging.getLogger(__name__)


class LocalBackend:
    """
    Local filesystem storage backend.

    Directory structure:
    storage_dir/
        <pubkey>                 file written by PUT /<pubkey>
        ...                      anything else placed under the root is
                                 served read-only by GET

    Blocking filesystem calls run in a worker thread so that one request's
    disk I/O never stalls the event loop.
    """

    def __init__(self, storage_dir: Path):
        """
        Initialize local backend.

        Args:
            storage_dir: Base directory for storage
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._root = self.storage_dir.resolve()

        logger.info(f"Initialized local backend at {self.storage_dir}")

    def resolve(self, request_path: str) -> Path:
        """
        Map a request path onto the storage root.

        Args:
            request_path: URL path as given by the client

        Returns:
            Absolute file path under the storage root

        Raises:
            ValueError: If the path points outside the storage root
        """
        segments = [segment for segment in request_path.split("/") if segment]
        file_path = self._root.joinpath(*segments).resolve()

        if file_path != self._root and self._root not in file_path.parents:
            raise ValueError(f"Path escapes storage root: {request_path}")

        return file_path

    async def ensure_parent(self, request_path: str) -> Path:
        """
        Create all directories leading up to a file.

        Returns:
            Absolute file path

        Raises:
            OSError: If a directory cannot be created
        """
        file_path = self.resolve(request_path)
        await asyncio.to_thread(file_path.parent.mkdir, parents=True, exist_ok=True)
        return file_path

    async def write_stream(self, request_path: str, chunks: AsyncIterable[bytes]) -> int:
        """
        Stream data to a file, replacing any existing content.

        Data is written to a temporary sibling and moved into place once the
        stream completes, so a failed upload never leaves a truncated file.

        Args:
            request_path: URL path of the destination
            chunks: Async iterable of body chunks

        Returns:
            Number of bytes written

        Raises:
            Exception: Whatever the stream or the filesystem raised; the
                temporary file is removed first
        """
        file_path = self.resolve(request_path)
        fd, tmp_name = await asyncio.to_thread(
            tempfile.mkstemp, prefix=f".{file_path.name}.", suffix=".part", dir=file_path.parent
        )
        f = os.fdopen(fd, "wb")
        written = 0

        try:
            async for chunk in chunks:
                if chunk:
                    await asyncio.to_thread(f.write, chunk)
                    written += len(chunk)
            await asyncio.to_thread(f.close)
            await asyncio.to_thread(os.replace, tmp_name, file_path)
        except BaseException:
            f.close()
            self._discard(tmp_name)
            raise

        logger.debug(f"Stored {written} bytes to {file_path}")

        return written

    async def read(self, request_path: str) -> bytes:
        """
        Read a whole file.

        Returns:
            File contents

        Raises:
            FileNotFoundError: If nothing readable exists at the path
            OSError: On other read errors
        """
        try:
            file_path = self.resolve(request_path)
        except ValueError as e:
            raise FileNotFoundError(str(e)) from e

        if not await asyncio.to_thread(file_path.is_file):
            raise FileNotFoundError(f"No file at {file_path}")

        data = await asyncio.to_thread(file_path.read_bytes)

        logger.debug(f"Retrieved {len(data)} bytes from {file_path}")

        return data

    # Internal methods

    @staticmethod
    def _discard(tmp_name: str):
        """Remove a leftover temporary file."""
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
