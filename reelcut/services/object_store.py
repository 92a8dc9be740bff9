"""
Object Store
Binary storage for uploaded source videos, keyed by owner and path.
Backed by the local filesystem or AWS S3.
"""

import asyncio
import mimetypes
import shutil
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional

from ..config import get_settings
from ..utils.exceptions import APIKeyError
from ..utils.logger import get_logger

logger = get_logger()


def object_key(owner: str, path: str) -> str:
    """Build the storage key for ``path`` under ``owner``"""
    owner = (owner or "").strip()
    if not owner or "/" in owner or owner in (".", ".."):
        raise ValueError(f"Invalid owner: {owner!r}")

    parts = [part for part in PurePosixPath(path.replace("\\", "/")).parts if part not in ("/", "")]
    if not parts or any(part in (".", "..") for part in parts):
        raise ValueError(f"Invalid object path: {path!r}")

    return "/".join([owner, *parts])


class ObjectStore:
    """Storage interface used by uploads and ingestion"""

    async def upload(self, owner: str, path: str, fileobj: BinaryIO, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    async def download(self, owner: str, path: str, destination: str) -> str:
        raise NotImplementedError

    async def exists(self, owner: str, path: str) -> bool:
        raise NotImplementedError

    async def delete(self, owner: str, path: str) -> bool:
        raise NotImplementedError


class LocalObjectStore(ObjectStore):
    """Object store rooted at a local directory"""

    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, owner: str, path: str) -> Path:
        return self.root / object_key(owner, path)

    async def upload(self, owner: str, path: str, fileobj: BinaryIO, content_type: Optional[str] = None) -> str:
        target = self._path(owner, path)
        target.parent.mkdir(parents=True, exist_ok=True)

        def do_copy():
            with open(target, "wb") as output_file:
                shutil.copyfileobj(fileobj, output_file, length=1024 * 1024)

        await asyncio.get_running_loop().run_in_executor(None, do_copy)
        logger.info(f"Stored object: {object_key(owner, path)}")
        return object_key(owner, path)

    async def download(self, owner: str, path: str, destination: str) -> str:
        source = self._path(owner, path)
        if not source.is_file():
            raise FileNotFoundError(f"Object not found: {object_key(owner, path)}")

        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        await asyncio.get_running_loop().run_in_executor(None, shutil.copyfile, source, destination)
        return destination

    async def exists(self, owner: str, path: str) -> bool:
        return self._path(owner, path).is_file()

    async def delete(self, owner: str, path: str) -> bool:
        target = self._path(owner, path)
        if not target.is_file():
            return False
        target.unlink()
        return True


class S3ObjectStore(ObjectStore):
    """Object store backed by an S3 bucket"""

    def __init__(self, bucket: Optional[str] = None):
        self.settings = get_settings()
        self.bucket = bucket or self.settings.s3_bucket_name
        self._client = None

    def _ensure_client(self):
        """Lazy initialize S3 client"""
        if self._client is not None:
            return

        if not self.settings.aws_access_key_id or not self.settings.aws_secret_access_key:
            raise APIKeyError("AWS S3")

        import boto3
        from botocore.config import Config

        config = Config(
            retries={'max_attempts': 3, 'mode': 'adaptive'},
            max_pool_connections=10
        )

        self._client = boto3.client(
            's3',
            aws_access_key_id=self.settings.aws_access_key_id,
            aws_secret_access_key=self.settings.aws_secret_access_key,
            region_name=self.settings.aws_region,
            config=config
        )
        logger.info(f"S3 client initialized for bucket: {self.bucket}")

    async def upload(self, owner: str, path: str, fileobj: BinaryIO, content_type: Optional[str] = None) -> str:
        self._ensure_client()
        key = object_key(owner, path)
        content_type = content_type or mimetypes.guess_type(path)[0] or 'application/octet-stream'

        from boto3.s3.transfer import TransferConfig

        config = TransferConfig(
            multipart_threshold=5 * 1024 * 1024,
            multipart_chunksize=5 * 1024 * 1024,
            max_concurrency=4,
            use_threads=True
        )

        await asyncio.get_running_loop().run_in_executor(
            None,
            lambda: self._client.upload_fileobj(
                fileobj,
                self.bucket,
                key,
                ExtraArgs={'ContentType': content_type},
                Config=config
            )
        )
        logger.info(f"Uploaded to S3: {key}")
        return key

    async def download(self, owner: str, path: str, destination: str) -> str:
        from botocore.exceptions import ClientError

        self._ensure_client()
        key = object_key(owner, path)
        Path(destination).parent.mkdir(parents=True, exist_ok=True)

        try:
            await asyncio.get_running_loop().run_in_executor(
                None,
                lambda: self._client.download_file(self.bucket, key, destination)
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey"):
                raise FileNotFoundError(f"Object not found: {key}") from e
            raise
        return destination

    async def exists(self, owner: str, path: str) -> bool:
        from botocore.exceptions import ClientError

        self._ensure_client()
        key = object_key(owner, path)
        try:
            await asyncio.get_running_loop().run_in_executor(
                None,
                lambda: self._client.head_object(Bucket=self.bucket, Key=key)
            )
        except ClientError:
            return False
        return True

    async def delete(self, owner: str, path: str) -> bool:
        self._ensure_client()
        key = object_key(owner, path)
        await asyncio.get_running_loop().run_in_executor(
            None,
            lambda: self._client.delete_object(Bucket=self.bucket, Key=key)
        )
        logger.info(f"Deleted from S3: {key}")
        return True


_object_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """Return singleton object store for the configured backend."""
    global _object_store
    if _object_store is None:
        settings = get_settings()
        if settings.storage_backend == "s3":
            _object_store = S3ObjectStore()
        else:
            _object_store = LocalObjectStore(settings.storage_dir)
    return _object_store
