"""
Artifact Publishing

Compresses the finished online.db, uploads it to S3 and purges the
s3-nginx-proxy cache entry in front of it.
"""

import bz2
import logging
import os
from typing import Optional

import boto3
import httpx
from botocore.config import Config

logger = logging.getLogger(__name__)

S3_BUCKET = "assets.ppy.sh"
S3_OBJECT_KEY = "client-resources/online.db.bz2"
S3_REGION = "us-west-1"
CONTENT_TYPE = "application/x-bzip2"
PUBLIC_URL = f"https://{S3_BUCKET}/{S3_OBJECT_KEY}"

CHUNK_SIZE = 1024 * 1024


def compress_file(source_path: str, target_path: Optional[str] = None) -> str:
    """
    Stream-compress a file with bzip2.

    Args:
        source_path: File to compress
        target_path: Output path (default: source_path + ".bz2")

    Returns:
        Path of the compressed file
    """
    target_path = target_path or f"{source_path}.bz2"

    compressor = bz2.BZ2Compressor(9)
    with open(source_path, "rb") as src, open(target_path, "wb") as dst:
        while True:
            chunk = src.read(CHUNK_SIZE)
            if not chunk:
                break
            dst.write(compressor.compress(chunk))
        dst.write(compressor.flush())

    logger.debug(
        f"Compressed {source_path} ({os.path.getsize(source_path)} bytes) "
        f"to {target_path} ({os.path.getsize(target_path)} bytes)"
    )
    return target_path


class Publisher:
    """
    Produces and publishes the compressed online.db artifact.

    Publishing is gated on credentials: without S3_KEY the run stays
    local, and without S3_PROXY_CACHE_PURGE_KEY the cache is left alone.
    """

    def __init__(self, settings, s3_client=None, http_client: Optional[httpx.Client] = None):
        """
        Initialize publisher.

        Args:
            settings: Settings object with SQLITE_PATH and S3_* values
            s3_client: Preconfigured S3 client (default: built from settings)
            http_client: httpx client used for the cache purge
        """
        self.settings = settings
        self._s3_client = s3_client
        self._http_client = http_client

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client(
                "s3",
                aws_access_key_id=self.settings.S3_KEY,
                aws_secret_access_key=self.settings.S3_SECRET,
                region_name=S3_REGION,
                use_ssl=False,
                config=Config(
                    s3={"addressing_style": "path"},
                    connect_timeout=10,
                    read_timeout=60,
                ),
            )
        return self._s3_client

    def compress(self) -> str:
        """Compress the SQLite file next to itself and return the artifact path."""
        logger.info("Compressing...")
        return compress_file(self.settings.SQLITE_PATH, self.settings.bz2_path)

    def upload(self, path: str) -> None:
        """
        Upload the compressed artifact with public-read access.

        Args:
            path: Compressed artifact path

        Raises:
            botocore.exceptions.ClientError: If the upload is rejected
        """
        logger.info("Uploading to S3...")

        with open(path, "rb") as stream:
            self.s3_client.put_object(
                Bucket=S3_BUCKET,
                Key=S3_OBJECT_KEY,
                Body=stream,
                ACL="public-read",
                ContentType=CONTENT_TYPE,
                ContentLength=os.path.getsize(path),
            )

        logger.info(f"Uploaded {path} to s3://{S3_BUCKET}/{S3_OBJECT_KEY}")

    def purge_cache(self) -> None:
        """
        Purge the proxy cache entry for the published artifact.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
        """
        logger.info("Purging s3-nginx-proxy cache...")

        headers = {"Authorization": self.settings.S3_PROXY_CACHE_PURGE_KEY}
        if self._http_client is not None:
            response = self._http_client.delete(PUBLIC_URL, headers=headers)
        else:
            with httpx.Client(timeout=30.0) as client:
                response = client.delete(PUBLIC_URL, headers=headers)

        response.raise_for_status()
        logger.debug(f"Cache purge returned {response.status_code}")

    def publish(self) -> bool:
        """
        Compress, then upload and purge if credentials are present.

        Returns:
            True if the artifact was uploaded
        """
        path = self.compress()

        if not self.settings.S3_KEY:
            logger.info("S3_KEY not set, skipping upload")
            return False

        self.upload(path)

        if self.settings.S3_PROXY_CACHE_PURGE_KEY:
            self.purge_cache()
        else:
            logger.info("S3_PROXY_CACHE_PURGE_KEY not set, skipping cache purge")

        return True
