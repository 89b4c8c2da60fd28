"""
Accès S3 / MinIO.

Deux clients : l'interne (upload / suppression depuis l'API, réseau docker)
et le public (signature des URLs, doit viser l'hôte vu par le navigateur).
Les erreurs boto sont converties en ExternalServiceError (502).
"""

import io

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ExternalServiceError
from heritage_crafts.core.logging_config import get_logger

logger = get_logger(__name__)


def make_s3_client(endpoint_url: str):
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url or None,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_KEY,
        aws_secret_access_key=settings.S3_SECRET,
        config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        use_ssl=not endpoint_url or endpoint_url.startswith("https"),
    )


def make_s3_internal():
    return make_s3_client(str(settings.S3_ENDPOINT))


def make_s3_public():
    return make_s3_client(str(settings.MINIO_PUBLIC_ENDPOINT))


def put_media_object(s3, *, bucket: str, key: str, raw: bytes, mime: str, sha256: str) -> None:
    try:
        s3.upload_fileobj(
            Fileobj=io.BytesIO(raw),
            Bucket=bucket,
            Key=key,
            ExtraArgs={"ContentType": mime, "Metadata": {"sha256": sha256}},
        )
    except (BotoCoreError, ClientError) as e:
        logger.error("S3 upload failed for %s/%s: %s", bucket, key, e)
        raise ExternalServiceError("Storage upload failed")


def delete_media_object(s3, *, bucket: str, key: str) -> None:
    try:
        s3.delete_object(Bucket=bucket, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.error("S3 delete failed for %s/%s: %s", bucket, key, e)
        raise ExternalServiceError("Storage delete failed")


def presign_get_url(s3, *, bucket: str, key: str, content_type: str, ttl: int) -> str:
    return s3.generate_presigned_url(
        ClientMethod="get_object",
        Params={"Bucket": bucket, "Key": key, "ResponseContentType": content_type},
        ExpiresIn=ttl,
    )
