"""
Nostore core: request handlers and content-type mapping.
"""

from .content_types import CONTENT_TYPES, DEFAULT_CONTENT_TYPE, content_type_for_path, get_content_type
from .handlers import ReadHandler, WriteHandler

__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "ReadHandler",
    "WriteHandler",
    "content_type_for_path",
    "get_content_type",
]
