"""Local filesystem adapter for :class:`ByteStorage`."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from app.storage.base import ByteStorage, StorageError, StorageLocator

logger = logging.getLogger(__name__)


class LocalByteStorage(ByteStorage):
    """Stores bytes below *root*; blocking file I/O runs in a worker thread."""

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def locate(self, relative_path: str) -> StorageLocator:
        absolute = (self._root / relative_path).resolve()
        if self._root not in absolute.parents:
            raise StorageError(f"Locator '{relative_path}' escapes the storage root")
        return StorageLocator(relative_path=relative_path, absolute_path=str(absolute))

    async def write(self, locator: StorageLocator, data: bytes) -> None:
        try:
            await asyncio.to_thread(self._write_sync, Path(locator.absolute_path), data)
        except OSError as exc:
            raise StorageError(f"Could not write '{locator.relative_path}': {exc}") from exc
        logger.debug("Stored %d bytes at %s", len(data), locator.relative_path)

    async def read(self, locator: StorageLocator) -> bytes:
        return await asyncio.to_thread(Path(locator.absolute_path).read_bytes)

    async def exists(self, locator: StorageLocator) -> bool:
        return await asyncio.to_thread(Path(locator.absolute_path).is_file)

    @staticmethod
    def _write_sync(target: Path, data: bytes) -> None:
        # Write to a temp file in the same directory and rename, so a crash
        # never leaves a truncated file under the final name.
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
