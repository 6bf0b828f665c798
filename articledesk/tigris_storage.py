"""
Tigris (S3-compatible) helpers for stores that keep one JSON object per key.
"""
import json
import os
from typing import Any, Dict, Optional, Tuple

import boto3
from botocore.exceptions import ClientError

TIGRIS_ENDPOINT = "https://fly.storage.tigris.dev"


def create_tigris_client(
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    bucket_name: Optional[str] = None,
    region: Optional[str] = None
) -> Tuple[Any, str]:
    """
    Build an S3 client for Tigris from arguments or the AWS_* / TIGRIS_* environment.

    Returns:
        (s3_client, bucket_name)

    Raises:
        ValueError: If credentials or the bucket name are missing
    """
    access_key_id = access_key_id or os.getenv('AWS_ACCESS_KEY_ID')
    secret_access_key = secret_access_key or os.getenv('AWS_SECRET_ACCESS_KEY')
    bucket_name = bucket_name or os.getenv('TIGRIS_BUCKET_NAME')

    if not access_key_id or not secret_access_key:
        raise ValueError("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required for Tigris storage")
    if not bucket_name:
        raise ValueError("TIGRIS_BUCKET_NAME is required for Tigris storage")

    client = boto3.client(
        's3',
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        endpoint_url=endpoint_url or os.getenv('AWS_ENDPOINT_URL_S3', TIGRIS_ENDPOINT),
        region_name=region or os.getenv('AWS_REGION', 'auto')
    )
    return client, bucket_name


def load_json_object(s3_client, bucket_name: str, key: str) -> Optional[Dict[str, Any]]:
    """Read and decode a JSON object; None when the key does not exist."""
    try:
        response = s3_client.get_object(Bucket=bucket_name, Key=key)
    except ClientError as e:
        if e.response['Error']['Code'] == 'NoSuchKey':
            return None
        raise
    return json.loads(response['Body'].read().decode('utf-8'))


def save_json_object(s3_client, bucket_name: str, key: str, data: Dict[str, Any]) -> None:
    """Encode and write a JSON object, uncached."""
    s3_client.put_object(
        Bucket=bucket_name,
        Key=key,
        Body=json.dumps(data, indent=2),
        ContentType='application/json',
        CacheControl='no-cache, no-store, must-revalidate'
    )
