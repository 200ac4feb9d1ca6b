"""Object storage for uploaded media files."""
import asyncio
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from minio import Minio
from minio.error import S3Error

from nexus.config import Settings


logger = logging.getLogger(__name__)


@dataclass
class StoredObject:
    """Listing entry for a stored file."""
    key: str
    size: int
    uploaded: Optional[datetime] = None
    content_type: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": self.size,
            "uploaded": self.uploaded.isoformat() if self.uploaded else None,
            "contentType": self.content_type,
        }


@dataclass
class ObjectData:
    data: bytes
    content_type: Optional[str] = None


class ObjectStorage(ABC):
    """put/get/list/delete contract."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[ObjectData]:
        pass

    @abstractmethod
    async def list_objects(self, limit: Optional[int] = None) -> list[StoredObject]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass


class MemoryObjectStorage(ObjectStorage):
    """Process-local storage for development and tests."""

    def __init__(self):
        self._objects: dict[str, tuple[ObjectData, datetime]] = {}

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        self._objects[key] = (ObjectData(data, content_type), datetime.now(timezone.utc))

    async def get(self, key: str) -> Optional[ObjectData]:
        item = self._objects.get(key)
        return item[0] if item else None

    async def list_objects(self, limit: Optional[int] = None) -> list[StoredObject]:
        objects = [
            StoredObject(key=k, size=len(obj.data), uploaded=ts, content_type=obj.content_type)
            for k, (obj, ts) in sorted(self._objects.items())
        ]
        return objects[:limit] if limit else objects

    async def delete(self, key: str) -> None:
        self._objects.pop(key, None)


class MinioObjectStorage(ObjectStorage):
    """Storage service using MinIO / S3.

    The MinIO client is blocking, so calls run in a worker thread.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
    ):
        self.client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )
        self.bucket = bucket
        self._bucket_checked = False

    def _ensure_bucket_exists(self) -> None:
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
            logger.info("Created bucket %s", self.bucket)
        self._bucket_checked = True

    def _put(self, key: str, data: bytes, content_type: Optional[str]) -> None:
        self._ensure_bucket_exists()
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type or "application/octet-stream",
        )

    def _get(self, key: str) -> Optional[ObjectData]:
        self._ensure_bucket_exists()
        try:
            response = self.client.get_object(self.bucket, key)
        except S3Error as e:
            if e.code == "NoSuchKey":
                return None
            raise
        try:
            return ObjectData(response.read(), response.headers.get("Content-Type"))
        finally:
            response.close()
            response.release_conn()

    def _list(self, limit: Optional[int]) -> list[StoredObject]:
        self._ensure_bucket_exists()
        objects = []
        for obj in self.client.list_objects(self.bucket, recursive=True):
            objects.append(StoredObject(
                key=obj.object_name,
                size=obj.size or 0,
                uploaded=obj.last_modified,
                content_type=obj.content_type,
            ))
            if limit and len(objects) >= limit:
                break
        return objects

    def _delete(self, key: str) -> None:
        self._ensure_bucket_exists()
        self.client.remove_object(self.bucket, key)

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        await asyncio.to_thread(self._put, key, data, content_type)

    async def get(self, key: str) -> Optional[ObjectData]:
        return await asyncio.to_thread(self._get, key)

    async def list_objects(self, limit: Optional[int] = None) -> list[StoredObject]:
        return await asyncio.to_thread(self._list, limit)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


def create_storage(settings: Settings) -> ObjectStorage:
    """Build the storage backend selected in settings."""
    if settings.storage_backend == "minio":
        return MinioObjectStorage(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            bucket=settings.minio_bucket,
            secure=settings.minio_secure,
        )
    return MemoryObjectStorage()
