"""
Cloudflare R2 Storage Service
S3-compatible object storage for uploaded files
"""

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
MISSING_CODES = {"404", "NoSuchKey", "NotFound"}

# S3 rewrites underscores in metadata names, so keys are single words
CONTENT_TYPE_KEY = "contenttype"
UPLOADED_BY_KEY = "uploadedby"

@dataclass
class StoredObject:
    """An object fetched from the bucket, body still unread"""
    key: str
    body: Any
    content_type: str
    uploaded_by: str
    size: int
    uploaded_at: Optional[datetime] = None

def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in MISSING_CODES

class R2Storage:
    """Cloudflare R2 storage client"""

    def __init__(self, client, bucket_name: str):
        """
        Initialize R2 storage

        Args:
            client: boto3 S3 client
            bucket_name: R2 bucket name
        """
        self.client = client
        self.bucket_name = bucket_name

        logger.info(f"R2 storage initialized for bucket: {bucket_name}")

    @classmethod
    def connect(
        cls,
        endpoint_url: Optional[str],
        access_key: Optional[str],
        secret_key: Optional[str],
        bucket_name: str
    ) -> "R2Storage":
        """Create an S3 client pointed at the R2 endpoint"""
        client = boto3.client(
            's3',
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=Config(signature_version='s3v4'),
            region_name='auto'
        )
        return cls(client, bucket_name)

    def put(
        self,
        key: str,
        file_obj: BinaryIO,
        content_type: Optional[str] = None,
        uploaded_by: Optional[str] = None
    ) -> str:
        """
        Upload a file-like object to R2

        The object is sent in parts, so it never needs to fit in memory.

        Args:
            key: Object key (path)
            file_obj: Readable binary stream positioned at the start
            content_type: MIME type kept as object metadata
            uploaded_by: Email of the uploading user

        Returns:
            Object key
        """
        content_type = content_type or DEFAULT_CONTENT_TYPE
        self.client.upload_fileobj(
            file_obj,
            self.bucket_name,
            key,
            ExtraArgs={
                'ContentType': content_type,
                'Metadata': {
                    CONTENT_TYPE_KEY: content_type,
                    UPLOADED_BY_KEY: uploaded_by or ''
                }
            }
        )

        logger.info(f"Stored object in R2: {key}")
        return key

    def get(self, key: str) -> Optional[StoredObject]:
        """
        Fetch an object from R2

        Returns:
            StoredObject with a streaming body, or None if the key is absent
        """
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise

        metadata = response.get('Metadata', {})
        logger.info(f"Retrieved object from R2: {key}")
        return StoredObject(
            key=key,
            body=response['Body'],
            content_type=metadata.get(CONTENT_TYPE_KEY) or response.get('ContentType') or DEFAULT_CONTENT_TYPE,
            uploaded_by=metadata.get(UPLOADED_BY_KEY, ''),
            size=response.get('ContentLength', 0),
            uploaded_at=response.get('LastModified')
        )

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        """Object metadata, or None if the key is absent"""
        try:
            return self.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise

    def copy(self, source: str, destination: str) -> str:
        """Server-side copy, metadata included"""
        self.client.copy_object(
            Bucket=self.bucket_name,
            Key=destination,
            CopySource={'Bucket': self.bucket_name, 'Key': source}
        )

        logger.info(f"Copied object in R2: {source} -> {destination}")
        return destination

    def delete(self, key: str) -> bool:
        """
        Delete object from R2

        Args:
            key: Object key

        Returns:
            True if successful
        """
        self.client.delete_object(Bucket=self.bucket_name, Key=key)

        logger.info(f"Deleted from R2: {key}")
        return True

    def list_objects(
        self,
        prefix: str = "",
        max_keys: int = 1000,
        cursor: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """
        List one page of objects in R2

        Args:
            prefix: Key prefix to filter
            max_keys: Maximum number of keys
            cursor: Continuation token from a previous page

        Returns:
            (objects, next cursor or None when the listing is complete)
        """
        kwargs = {'Bucket': self.bucket_name, 'Prefix': prefix, 'MaxKeys': max_keys}
        if cursor:
            kwargs['ContinuationToken'] = cursor

        response = self.client.list_objects_v2(**kwargs)

        objects = [
            {
                'key': obj['Key'],
                'uploaded_at': obj.get('LastModified'),
                'size': obj.get('Size', 0)
            }
            for obj in response.get('Contents', [])
        ]
        logger.info(f"Listed {len(objects)} objects from R2 (prefix={prefix!r})")

        next_cursor = response.get('NextContinuationToken') if response.get('IsTruncated') else None
        return objects, next_cursor

    def list_prefixes(self, delimiter: str = "/") -> List[str]:
        """Top-level 'directories' of the bucket, without the delimiter"""
        paginator = self.client.get_paginator('list_objects_v2')
        prefixes = []
        for page in paginator.paginate(Bucket=self.bucket_name, Delimiter=delimiter):
            for common in page.get('CommonPrefixes', []):
                prefixes.append(common['Prefix'].rstrip(delimiter))
        return prefixes
