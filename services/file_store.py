"""
File storage for payment screenshots.

Two backends share one interface:

- ``LocalFileStore`` writes under ``UPLOAD_FOLDER`` and serves from ``UPLOAD_URL_PREFIX``
- ``S3FileStore`` uploads to an S3/MinIO bucket through boto3

``upload`` and ``delete`` never raise; they return a ``FileResult`` whose
``success`` flag and ``error`` string the caller inspects.
"""

import logging
import os
import secrets
import time
from dataclasses import dataclass

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    success: bool
    file_id: str = None
    public_url: str = None
    error: str = None


def build_object_name(original_name, folder="payment-screenshots"):
    """``<folder>/<ms timestamp>_<random>.<ext>`` so uploads never overwrite each other."""
    safe = secure_filename(original_name or "")
    ext = safe.rsplit(".", 1)[1].lower() if "." in safe else "bin"
    name = f"{int(time.time() * 1000)}_{secrets.token_hex(4)}.{ext}"
    return f"{folder}/{name}" if folder else name


class LocalFileStore:
    def __init__(self, root, url_prefix="/static/uploads", folder="payment-screenshots"):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        self.folder = folder

    def _path(self, file_id):
        path = os.path.normpath(os.path.join(self.root, file_id))
        if not path.startswith(os.path.normpath(self.root) + os.sep):
            raise ValueError(f"File id escapes upload folder: {file_id}")
        return path

    def upload(self, data, content_type, original_name):
        file_id = build_object_name(original_name, self.folder)
        try:
            path = self._path(file_id)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(data)
        except (OSError, ValueError) as e:
            logger.exception("Local upload failed for %s", file_id)
            return FileResult(success=False, error=str(e))

        logger.info("Stored upload %s (%s, %d bytes)", file_id, content_type, len(data))
        return FileResult(success=True, file_id=file_id, public_url=f"{self.url_prefix}/{file_id}")

    def delete(self, file_id):
        try:
            os.remove(self._path(file_id))
        except FileNotFoundError:
            return FileResult(success=False, file_id=file_id, error="File not found")
        except (OSError, ValueError) as e:
            logger.warning("Local delete failed for %s: %s", file_id, e)
            return FileResult(success=False, file_id=file_id, error=str(e))
        return FileResult(success=True, file_id=file_id)


class S3FileStore:
    def __init__(self, bucket, region=None, endpoint_url=None, public_base_url=None,
                 timeout=15, folder="payment-screenshots", client=None):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.timeout = timeout
        self.folder = folder
        self._client = client

    def _get_client(self):
        """Lazy initialization of the S3/MinIO client"""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                config=Config(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={"max_attempts": 3, "mode": "standard"},
                    signature_version="s3v4",
                ),
            )
        return self._client

    def public_url(self, file_id):
        if self.public_base_url:
            return f"{self.public_base_url}/{file_id}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{file_id}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{file_id}"

    def upload(self, data, content_type, original_name):
        file_id = build_object_name(original_name, self.folder)
        try:
            self._get_client().put_object(
                Bucket=self.bucket,
                Key=file_id,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("S3 upload failed for %s", file_id)
            return FileResult(success=False, error=str(e))

        logger.info("Uploaded %s to s3://%s", file_id, self.bucket)
        return FileResult(success=True, file_id=file_id, public_url=self.public_url(file_id))

    def delete(self, file_id):
        try:
            self._get_client().delete_object(Bucket=self.bucket, Key=file_id)
        except (BotoCoreError, ClientError) as e:
            logger.warning("S3 delete failed for %s: %s", file_id, e)
            return FileResult(success=False, file_id=file_id, error=str(e))
        return FileResult(success=True, file_id=file_id)


def create_file_store(config):
    backend = (config.get("FILE_STORAGE_BACKEND") or "local").lower()
    folder = config.get("UPLOAD_SUBFOLDER", "payment-screenshots")
    if backend == "s3":
        return S3FileStore(
            bucket=config["S3_BUCKET"],
            region=config.get("S3_REGION"),
            endpoint_url=config.get("S3_ENDPOINT_URL"),
            public_base_url=config.get("S3_PUBLIC_BASE_URL"),
            timeout=config.get("STORAGE_TIMEOUT_SECONDS", 15),
            folder=folder,
        )
    if backend == "local":
        return LocalFileStore(
            root=config["UPLOAD_FOLDER"],
            url_prefix=config.get("UPLOAD_URL_PREFIX", "/static/uploads"),
            folder=folder,
        )
    raise ValueError(f"Unknown FILE_STORAGE_BACKEND: {backend}")


def get_file_store():
    return current_app.extensions["file_store"]
