"""
Nostore request handlers.

WriteHandler authenticates and authorizes an upload before streaming it to
storage. ReadHandler serves stored files to anyone.
"""

import logging
from typing import AsyncIterable, Optional

from fastapi import HTTPException, status
from fastapi.responses import PlainTextResponse, Response

from nostore.auth.access_control import denial_reason
from nostore.auth.nostr_event import verify_authorization_header
from nostore.backends.local import LocalBackend
from nostore.core.content_types import content_type_for_path

logger = logging.getLogger(__name__)


UNAUTHORIZED_MESSAGE = "Unauthorized: a valid signed Nostr event is required"
CREATED_MESSAGE = "File created"
DIRECTORY_ERROR_MESSAGE = "Error creating directory"
WRITE_ERROR_MESSAGE = "Error writing file"
NOT_FOUND_MESSAGE = "File not found"


class WriteHandler:
    """
    Handles PUT requests.

    Flow:
    1. Verify the signed event in the Authorization header (401 on failure)
    2. Check the caller owns the target path (403 on failure)
    3. Create parent directories (500 on failure)
    4. Stream the body to disk (500 on failure, 201 on success)
    """

    def __init__(self, backend: LocalBackend):
        self.backend = backend

    async def handle(
        self,
        request_path: str,
        authorization: Optional[str],
        body: AsyncIterable[bytes],
    ) -> Response:
        pubkey = verify_authorization_header(authorization)
        if pubkey is None:
            logger.info(f"Rejected unauthenticated write to {request_path}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_MESSAGE)

        reason = denial_reason(request_path, pubkey)
        if reason is not None:
            logger.info(f"Rejected write to {request_path} by {pubkey[:16]}...: {reason}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Forbidden: {reason}")

        try:
            await self.backend.ensure_parent(request_path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to create directory for {request_path}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=DIRECTORY_ERROR_MESSAGE,
            )

        try:
            size = await self.backend.write_stream(request_path, body)
        except Exception as e:
            # Includes client disconnects surfaced by the body stream
            logger.error(f"Failed to write {request_path}: {e!r}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=WRITE_ERROR_MESSAGE,
            )

        logger.info(f"File created: {request_path} ({size} bytes)")

        return PlainTextResponse(CREATED_MESSAGE, status_code=status.HTTP_201_CREATED)


class ReadHandler:
    """Handles GET requests. Reads are public."""

    def __init__(self, backend: LocalBackend):
        self.backend = backend

    async def handle(self, request_path: str) -> Response:
        try:
            data = await self.backend.read(request_path)
        except OSError as e:
            logger.warning(f"File not found: {request_path} ({e})")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)

        return Response(
            content=data,
            status_code=status.HTTP_200_OK,
            headers={"Content-Type": content_type_for_path(request_path)},
        )
