"""
S3 object storage for uploaded resumes
"""

import mimetypes
import re
import uuid
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from services.extraction import Attachment
from utils.bedrock_client import DOCUMENT_FORMATS
from utils.logging_utils import get_logger

logger = get_logger(__name__)

# Extension -> media type for the formats the model can read
EXTENSION_MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
}


def media_type_for(filename: Optional[str], declared: Optional[str] = None) -> Optional[str]:
    """
    Resolve a resume's media type from the declared type or the file extension

    Returns:
        A supported media type, or the best guess if none is supported
    """
    if declared:
        base = declared.split(";")[0].strip().lower()
        if base in DOCUMENT_FORMATS:
            return base
    if filename:
        extension = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension in EXTENSION_MEDIA_TYPES:
            return EXTENSION_MEDIA_TYPES[extension]
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return declared


def split_s3_url(location: str, default_bucket: Optional[str]) -> Tuple[Optional[str], str]:
    """Split ``s3://bucket/key`` into (bucket, key); bare keys use the default bucket"""
    if location.startswith("s3://"):
        bucket, _, key = location[5:].partition("/")
        return bucket, key
    return default_bucket, location


class ResumeStorage:
    """Upload, fetch and link resume files in S3"""

    def __init__(self, bucket_name: str, region_name: str = "us-east-1",
                 prefix: str = "resumes/", url_expiry: int = 3600, s3_client=None):
        """
        Initialize resume storage

        Args:
            bucket_name: S3 bucket holding resumes
            region_name: AWS region
            prefix: Key prefix for uploaded resumes
            url_expiry: Lifetime of presigned download URLs in seconds
            s3_client: Pre-built S3 client (tests)
        """
        self.bucket_name = bucket_name
        self.prefix = prefix
        self.url_expiry = url_expiry
        self.s3_client = s3_client or boto3.client("s3", region_name=region_name)

    def upload(self, data: bytes, filename: str, media_type: Optional[str] = None) -> str:
        """
        Upload a resume

        Args:
            data: File bytes
            filename: Original file name
            media_type: Declared media type

        Returns:
            Object key of the stored resume
        """
        safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", filename or "resume") or "resume"
        key = f"{self.prefix}{uuid.uuid4().hex}_{safe_name}"
        content_type = media_type_for(filename, media_type) or "application/octet-stream"

        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.info(f"✅ Uploaded resume to s3://{self.bucket_name}/{key}")
        return key

    def fetch(self, location: str) -> Optional[Attachment]:
        """
        Download a resume as an attachment

        Args:
            location: Object key or s3:// URL

        Returns:
            Attachment, or None if the object cannot be read
        """
        bucket, key = split_s3_url(location, self.bucket_name)
        if not bucket or not key:
            logger.warning(f"⚠️ Invalid resume location: {location}")
            return None
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
            data = response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"⚠️ Could not fetch resume {location}: {e}")
            return None

        filename = key.rsplit("/", 1)[-1]
        media_type = media_type_for(filename, response.get("ContentType"))
        return Attachment(data=data, media_type=media_type or "application/octet-stream", name=filename)

    def create_presigned_url(self, location: str, expiration: Optional[int] = None) -> Optional[str]:
        """Generate a presigned download URL for a resume"""
        bucket, key = split_s3_url(location, self.bucket_name)
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expiration or self.url_expiry,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error creating presigned URL: {e}")
            return None
