"""Local filesystem storage for uploaded videos."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Union
from uuid import uuid4

import aiofiles
import aiofiles.os
import structlog

from vidshield.domain.exceptions import ErrorContext, InvalidValueError

logger = structlog.get_logger(__name__)

_SUFFIX_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


@dataclass(frozen=True)
class StoredFile:
    """Result of persisting an upload."""

    path: str
    size_bytes: int


class LocalFileStorage:
    """Stores uploads under a root directory with generated file names.

    Client file names are never used as paths; only a sanitised
    extension is kept.
    """

    def __init__(
        self,
        root: Union[str, Path],
        *,
        max_bytes: int,
        allowed_content_prefix: str = "video/",
    ):
        self.root = Path(root)
        self.max_bytes = max_bytes
        self.allowed_content_prefix = allowed_content_prefix

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def validate_content_type(self, content_type: str | None) -> str:
        """Reject anything outside the accepted MIME prefix."""
        if not content_type or not content_type.startswith(self.allowed_content_prefix):
            raise InvalidValueError(
                f"Only {self.allowed_content_prefix}* uploads are accepted",
                context=ErrorContext(
                    field_name="content_type", invalid_value=content_type
                ),
            )
        return content_type

    def _target_for(self, filename: str) -> Path:
        suffix = Path(filename or "").suffix
        if not _SUFFIX_RE.match(suffix):
            suffix = ""
        return self.root / f"{uuid4().hex}{suffix.lower()}"

    async def save(
        self, filename: str, content_type: str | None, chunks: AsyncIterator[bytes]
    ) -> StoredFile:
        """Stream ``chunks`` to disk, enforcing the size limit.

        Raises:
            InvalidValueError: Content type rejected, upload empty or too large
        """
        self.validate_content_type(content_type)
        self.ensure_root()
        target = self._target_for(filename)
        size = 0
        try:
            async with aiofiles.open(target, "wb") as f:
                async for chunk in chunks:
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise InvalidValueError(
                            f"Upload exceeds the {self.max_bytes} byte limit",
                            context=ErrorContext(field_name="file", invalid_value=size),
                        )
                    await f.write(chunk)
            if size == 0:
                raise InvalidValueError(
                    "Uploaded file is empty", context=ErrorContext(field_name="file")
                )
        except BaseException:
            await self.delete(str(target))
            raise

        logger.info("upload_stored", path=str(target), size_bytes=size)
        return StoredFile(path=str(target), size_bytes=size)

    async def delete(self, path: str) -> bool:
        """Remove a stored file; False when it was already gone."""
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        return True
