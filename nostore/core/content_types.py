"""Content types served for stored files, keyed by file extension."""

from pathlib import PurePosixPath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".txt": "text/plain",
    ".html": "text/html",
    ".json": "application/json",
}


def get_content_type(ext: str) -> str:
    """Return the content type for a file extension such as ``.json``."""
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def content_type_for_path(path: str) -> str:
    """Return the content type for a request path based on its extension."""
    return get_content_type(PurePosixPath(path).suffix)
