"""S3 uploads and CloudFront signed playback URLs."""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import boto3
import rsa
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from botocore.signers import CloudFrontSigner

from ..domain.errors import MediaStorageError
from ..utils.time import utcnow

logger = logging.getLogger(__name__)

UPLOAD_CONTENT_TYPES = ("video/mp4", "video/quicktime", "video/x-msvideo")
URL_EXPIRES_SECONDS = 3600

_SCHEME_HOST = re.compile(r"^https?://[^/]+/")


class MediaStorage:
    """Wraps the S3 bucket holding source videos and the CloudFront distribution serving HLS."""

    def __init__(
        self,
        bucket: Optional[str],
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        cloudfront_domain: Optional[str] = None,
        cloudfront_key_pair_id: Optional[str] = None,
        cloudfront_private_key_path: Optional[str] = None,
        s3_client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._region = region
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._cloudfront_domain = cloudfront_domain
        self._key_pair_id = cloudfront_key_pair_id
        self._private_key_path = cloudfront_private_key_path
        self._client = s3_client
        self._signer: Optional[CloudFrontSigner] = None

    def _s3(self):
        if self._client is None:
            if not self._bucket:
                raise MediaStorageError("AWS_S3_BUCKET is not configured")
            self._client = boto3.client(
                "s3",
                region_name=self._region,
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
                config=Config(signature_version="s3v4"),
            )
            logger.info("S3 client initialised for bucket %s", self._bucket)
        return self._client

    # Uploads ----------------------------------------------------------------
    @staticmethod
    def upload_key(file_name: str) -> str:
        epoch_ms = int(utcnow().timestamp() * 1000)
        return f"videos/{epoch_ms}-{file_name}"

    def create_upload_url(self, file_name: str, content_type: str = "video/mp4") -> Dict[str, Any]:
        """Presign a PUT of a new source video.

        Returns:
            ``uploadUrl``, ``key`` and ``expiresIn`` for the client
        """
        if content_type not in UPLOAD_CONTENT_TYPES:
            raise MediaStorageError(f"Unsupported content type: {content_type}")
        key = self.upload_key(file_name)
        try:
            url = self._s3().generate_presigned_url(
                ClientMethod="put_object",
                Params={"Bucket": self._bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=URL_EXPIRES_SECONDS,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to presign upload for %s: %s", key, exc)
            raise MediaStorageError("Failed to generate upload URL") from exc
        return {"uploadUrl": url, "key": key, "expiresIn": URL_EXPIRES_SECONDS}

    def delete_object(self, key: str) -> None:
        try:
            self._s3().delete_object(Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise MediaStorageError(f"Failed to delete {key}") from exc
        logger.info("Deleted s3://%s/%s", self._bucket, key)

    # Playback ---------------------------------------------------------------
    def _cloudfront_signer(self) -> CloudFrontSigner:
        if self._signer is None:
            if not (self._cloudfront_domain and self._key_pair_id and self._private_key_path):
                raise MediaStorageError("CloudFront configuration missing")
            try:
                pem = Path(self._private_key_path).read_bytes()
            except OSError as exc:
                raise MediaStorageError("CloudFront private key is unreadable") from exc
            try:
                private_key = rsa.PrivateKey.load_pkcs1(pem)
            except ValueError as exc:
                raise MediaStorageError(
                    "CloudFront private key must be a PKCS#1 PEM (BEGIN RSA PRIVATE KEY)"
                ) from exc
            self._signer = CloudFrontSigner(
                self._key_pair_id, lambda message: rsa.sign(message, private_key, "SHA-1")
            )
        return self._signer

    def stream_path(self, hls_url: str) -> str:
        """Strip scheme and host so the path can be served from the distribution."""
        return _SCHEME_HOST.sub("", hls_url, count=1)

    def signed_stream_url(self, hls_url: str, expires_in: int = URL_EXPIRES_SECONDS) -> str:
        signer = self._cloudfront_signer()
        url = f"https://{self._cloudfront_domain}/{self.stream_path(hls_url)}"
        return signer.generate_presigned_url(url, date_less_than=utcnow() + timedelta(seconds=expires_in))
