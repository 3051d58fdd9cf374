from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from fastapi import HTTPException

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StorageBackend(str, Enum):
    LOCAL = "local"
    S3 = "s3"


@dataclass
class StoredFile:
    relative_path: str
    size: int
    local_path: Optional[str] = None


@dataclass
class RetrievedFile:
    content: bytes
    content_type: str


class StorageService:
    def __init__(self, backend: Optional[str] = None, upload_root: Optional[Path] = None) -> None:
        backend_name = (backend or settings.file_storage_backend or "local").lower()
        if backend_name.upper() not in StorageBackend.__members__:
            logger.warning("Unknown storage backend %r; using local storage", backend_name)
            backend_name = "local"
        self.backend = StorageBackend[backend_name.upper()]
        self.upload_root = Path(upload_root) if upload_root else settings.uploads_root_path
        self._s3_client = None
        if self.backend == StorageBackend.S3:
            self._configure_s3_client()

    def _configure_s3_client(self) -> None:
        try:
            import boto3
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("boto3 is required for S3 storage backend.") from exc

        if not settings.s3_bucket:
            raise RuntimeError("S3_BUCKET must be set when using the S3 storage backend.")

        session_kwargs = {
            "region_name": settings.s3_region,
            "aws_access_key_id": settings.s3_access_key,
            "aws_secret_access_key": settings.s3_secret_key,
            "endpoint_url": settings.s3_endpoint_url,
        }
        self._s3_client = boto3.client("s3", **{k: v for k, v in session_kwargs.items() if v})

    @staticmethod
    def _normalize_relative(relative_path: str) -> str:
        relative = relative_path.strip().lstrip("/")
        if ".." in Path(relative).parts:
            raise HTTPException(status_code=400, detail="Invalid file path.")
        return relative

    def save_file(self, relative_path: str, content: bytes, content_type: Optional[str] = None) -> StoredFile:
        relative = self._normalize_relative(relative_path)
        guessed_type = content_type or mimetypes.guess_type(relative)[0] or DEFAULT_CONTENT_TYPE

        if self.backend == StorageBackend.LOCAL:
            target_path = self.upload_root / relative
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_bytes(content)
            return StoredFile(relative_path=relative, size=len(content), local_path=str(target_path))

        assert self._s3_client is not None  # for type checkers
        self._s3_client.put_object(
            Bucket=settings.s3_bucket,
            Key=relative,
            Body=content,
            ContentType=guessed_type,
        )
        return StoredFile(relative_path=relative, size=len(content))

    def delete_file(self, relative_path: str) -> None:
        relative = self._normalize_relative(relative_path)
        if not relative:
            return
        if self.backend == StorageBackend.LOCAL:
            target = self.upload_root / relative
            if target.exists():
                target.unlink()
            return

        assert self._s3_client is not None
        self._s3_client.delete_object(Bucket=settings.s3_bucket, Key=relative)

    def retrieve_file(self, relative_path: str) -> RetrievedFile:
        relative = self._normalize_relative(relative_path)
        if self.backend == StorageBackend.LOCAL:
            target = self.upload_root / relative
            if not target.exists():
                raise HTTPException(status_code=404, detail="File not found.")
            content_type = mimetypes.guess_type(target.name)[0] or DEFAULT_CONTENT_TYPE
            return RetrievedFile(content=target.read_bytes(), content_type=content_type)

        assert self._s3_client is not None
        try:
            obj = self._s3_client.get_object(Bucket=settings.s3_bucket, Key=relative)
        except self._s3_client.exceptions.NoSuchKey:  # type: ignore[attr-defined]
            raise HTTPException(status_code=404, detail="File not found.") from None
        content = obj["Body"].read()
        content_type = obj.get("ContentType") or mimetypes.guess_type(relative)[0] or DEFAULT_CONTENT_TYPE
        return RetrievedFile(content=content, content_type=content_type)


storage_service = StorageService()
