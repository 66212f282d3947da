"""Byte storage port for uploaded compliance documents.

The verification services only depend on this interface. Where bytes live
(local disk, object storage) is an adapter decision; the locator layout is
``<agency_id>/<document_type>/<random token><ext>`` so every version owns a
distinct location.
"""

from __future__ import annotations

import os
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass


class StorageError(Exception):
    """Raised when an adapter cannot write or read bytes."""


@dataclass(frozen=True)
class StorageLocator:
    """Where one version's bytes live.

    Attributes:
        relative_path: Path below the storage root (portable form)
        absolute_path: Fully resolved path / key used by the adapter
    """

    relative_path: str
    absolute_path: str


class ByteStorage(ABC):
    """Append-only byte store. Nothing in the core deletes files."""

    @abstractmethod
    def locate(self, relative_path: str) -> StorageLocator:
        """Resolve a relative path against the storage root."""

    @abstractmethod
    async def write(self, locator: StorageLocator, data: bytes) -> None:
        """Persist *data* at *locator*. Must be complete when it returns.

        Raises:
            StorageError: If the bytes could not be written
        """

    @abstractmethod
    async def read(self, locator: StorageLocator) -> bytes:
        """Return the bytes stored at *locator*.

        Raises:
            FileNotFoundError: If nothing is stored there
        """

    @abstractmethod
    async def exists(self, locator: StorageLocator) -> bool:
        ...

    def build_locator(self, agency_id: str, document_type: str, filename: str) -> StorageLocator:
        """Derive a fresh locator for a new upload.

        The random token makes every call unique, even for identical bytes
        uploaded twice under the same filename.
        """
        ext = os.path.splitext(filename or "")[1].lower()
        token = secrets.token_urlsafe(16)
        return self.locate(f"{agency_id}/{document_type}/{token}{ext}")
