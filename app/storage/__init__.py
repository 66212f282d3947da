"""Byte storage package — where uploaded document bytes live.

Files:
  base.py   — ByteStorage port, StorageLocator, locator derivation
  local.py  — Filesystem adapter (default; rooted at AGENCY_DOCS_PATH)
"""

from app.core.config import settings
from app.storage.base import ByteStorage, StorageError, StorageLocator
from app.storage.local import LocalByteStorage

__all__ = ["ByteStorage", "LocalByteStorage", "StorageError", "StorageLocator", "get_storage"]


def get_storage() -> ByteStorage:
    """FastAPI dependency returning the configured byte storage."""
    return LocalByteStorage(settings.agency_docs_path)
