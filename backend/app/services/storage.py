"""Object storage for session recordings.

Buckets are directories under STORAGE_ROOT; objects are addressed by
bucket-relative paths such as `recordings/audio/<file>.mp3` and exposed at
`{STORAGE_PUBLIC_URL}/{bucket}/{path}`.
"""

import logging
import re
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


class RecordingStorage:
    def __init__(self, root: str, public_url: str, bucket: str):
        self.root = Path(root)
        self.public_url = public_url.rstrip("/")
        self.bucket = bucket

    def _resolve(self, path: str) -> Path:
        bucket_dir = (self.root / self.bucket).resolve()
        target = (bucket_dir / path).resolve()
        if bucket_dir not in target.parents:
            raise StorageError(f"Path escapes bucket: {path}")
        return target

    async def upload(self, path: str, data: bytes, content_type: str, upsert: bool = False) -> str:
        """Store `data` at `path` and return the stored path."""
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise StorageError(f"Object already exists: {path}")
        await aiofiles.os.makedirs(target.parent, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(data)
        logger.info("Stored %s (%d bytes, %s)", path, len(data), content_type)
        return path

    def get_public_url(self, path: str) -> str:
        return f"{self.public_url}/{self.bucket}/{path}"

    def extract_path(self, url: str):
        """Recover the bucket-relative path from a public URL, or None if it isn't ours."""
        match = re.search(rf"/{re.escape(self.bucket)}/(.+)$", url or "")
        return match.group(1) if match else None

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            if await aiofiles.os.path.exists(target):
                await aiofiles.os.remove(target)
                logger.info("Removed %s", path)
            else:
                logger.warning("Object %s already absent", path)
