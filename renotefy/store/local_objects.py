"""
ObjectStore that keeps files on the local disk.

Files land under the configured uploads directory and are served back by
the uploads router, so the returned URL is a path on this server.
"""

import asyncio
import logging
from pathlib import Path

from renotefy.store.base import ObjectStore

logger = logging.getLogger(__name__)


class LocalObjectStore(ObjectStore):
    """Writes blobs below a root directory."""

    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def resolve(self, path: str) -> Path:
        """Map a relative object path to a file below root.

        Raises:
            ValueError: If the path escapes the root directory.
        """
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"Object path escapes storage root: {path}")
        return target

    async def put(self, path: str, data: bytes) -> str:
        target = self.resolve(path)
        await asyncio.to_thread(_write_file, target, data)
        logger.info(f"Stored object {path} ({len(data)} bytes)")
        return f"{self.base_url}/{path}"


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
