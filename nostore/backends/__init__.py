"""
Storage backends for Nostore.

Supports local filesystem storage.
"""

from .local import LocalBackend

__all__ = ["LocalBackend"]
