import boto3
from botocore.exceptions import ClientError
from app.config import settings
from supabase import Client
import logging

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Objects in a Supabase Storage bucket"""

    def __init__(self, supabase: Client, bucket: str):
        self.supabase = supabase
        self.bucket = bucket

    def upload_file(self, file_content: bytes, path: str, content_type: str = "application/octet-stream") -> str:
        self.supabase.storage.from_(self.bucket).upload(
            path,
            file_content,
            file_options={"content-type": content_type}
        )
        return path

    def get_public_url(self, path: str) -> str:
        return self.supabase.storage.from_(self.bucket).get_public_url(path)

    def delete_file(self, path: str) -> None:
        self.supabase.storage.from_(self.bucket).remove([path])


class S3Storage:
    """Objects in one S3 bucket, with the logical bucket name as key prefix"""

    def __init__(self, bucket: str):
        if not all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name]):
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name
        self.prefix = bucket

    def _key(self, path: str) -> str:
        return f"{self.prefix}/{path}"

    def upload_file(self, file_content: bytes, path: str, content_type: str = "application/octet-stream") -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=self._key(path),
                Body=file_content,
                ContentType=content_type
            )
            return path
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise

    def get_public_url(self, path: str) -> str:
        return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{self._key(path)}"

    def delete_file(self, path: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=self._key(path))
        except ClientError as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            raise


def get_storage(supabase: Client, bucket: str):
    """Storage backend for a bucket, chosen by settings.storage_backend"""
    if settings.storage_backend == "s3":
        return S3Storage(bucket)
    return SupabaseStorage(supabase, bucket)
