import logging
import os
import uuid
from datetime import datetime
from typing import Optional

from supabase import Client, create_client

from app.core.config import settings, mask_secret
from app.workflow.errors import ServerUnavailable
from app.workflow.records import FileUpload

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    """Create a Supabase client from `settings`.

    Raises RuntimeError if the URL or both keys are missing.
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE or settings.SUPABASE_ANON_PUBLIC

    if not supabase_url:
        logger.error("SUPABASE_URL is not configured")
        raise RuntimeError("Supabase configuration missing: set SUPABASE_URL environment variable")
    if not supabase_key:
        logger.error("No Supabase key configured (SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC)")
        raise RuntimeError("Supabase configuration missing: set SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC")
    if not settings.SUPABASE_SERVICE_ROLE:
        logger.warning("SUPABASE_SERVICE_ROLE not set; falling back to SUPABASE_ANON_PUBLIC (reduced privileges)")

    logger.debug(f"Using Supabase host {supabase_url.split('://')[-1]} with key {mask_secret(supabase_key)}")
    return create_client(supabase_url, supabase_key)


class SupabaseFileStorage:
    """Private-bucket object storage for uploaded documents.

    Objects live at `{student_id}/{document_type}_{uuid}{ext}`. Records keep the
    object path; readers get a short-lived signed URL built on each read.
    """

    def __init__(self, client: Optional[Client] = None, bucket: Optional[str] = None):
        self.supabase = client or get_supabase_client()
        self.bucket = bucket or settings.SUPABASE_BUCKET
        self._ensure_bucket()

    def _ensure_bucket(self):
        try:
            self.supabase.storage.create_bucket(self.bucket, options={"public": False})
            logger.info(f"Created storage bucket: {self.bucket}")
        except Exception as bucket_error:
            if "already exists" in str(bucket_error).lower():
                logger.info(f"Bucket {self.bucket} already exists")
            else:
                logger.warning(f"Bucket creation returned: {bucket_error}")

    def build_path(self, student_id: str, document_type: str, filename: str) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        safe_type = document_type.replace(" ", "_").lower()
        return f"{student_id}/{safe_type}_{uuid.uuid4()}{ext}"

    # Uploads the file bytes and returns the object path
    async def upload(self, student_id: str, document_type: str, upload: FileUpload) -> str:
        file_path = self.build_path(student_id, document_type, upload.filename)
        content_type = upload.content_type or "application/octet-stream"
        try:
            self.supabase.storage.from_(self.bucket).upload(
                file_path,
                upload.content,
                {"content-type": content_type},
            )
        except Exception as e:
            logger.error(f"Supabase upload error for {upload.filename} (content_type={content_type}): {e}")
            raise ServerUnavailable(f"File storage upload failed: {e}") from e

        logger.info(f"Uploaded {upload.filename} ({upload.size} bytes, {content_type}) to {file_path}")
        return file_path

    async def delete(self, file_path: str):
        try:
            self.supabase.storage.from_(self.bucket).remove([file_path])
            logger.info(f"Deleted file {file_path} from storage")
        except Exception as e:
            logger.error(f"Supabase delete error for {file_path}: {e}")
            raise ServerUnavailable(f"Failed to delete file: {e}") from e

    # Removes a file but only warns on failure; used when replacing or cascading
    async def delete_quietly(self, file_path: Optional[str]):
        if not file_path:
            return
        try:
            await self.delete(self.extract_path(file_path))
        except ServerUnavailable as e:
            logger.warning(f"Could not remove stale file {file_path}: {e.message}")

    # Generates a short-lived signed URL with cache prevention
    async def signed_url(self, file_path: str) -> str:
        try:
            res = self.supabase.storage.from_(self.bucket).create_signed_url(
                self.extract_path(file_path),
                settings.SIGNED_URL_TTL_SECONDS,
                {
                    "response-cache-control": "no-cache, no-store, must-revalidate, max-age=0",
                    "response-expires": "0",
                },
            )
        except Exception as e:
            logger.error(f"Supabase signed URL error for {file_path}: {e}")
            raise ServerUnavailable(f"Failed to generate signed URL: {e}") from e

        signed = res.get("signedURL") or res.get("signedUrl")
        if not signed:
            logger.error(f"No signed URL returned for path: {file_path}")
            raise ServerUnavailable("Failed to generate signed URL")
        return signed + ("&" if "?" in signed else "?") + f"t={int(datetime.utcnow().timestamp())}"

    # Extracts the object path from a full Supabase URL
    def extract_path(self, url: str) -> str:
        if not url.startswith("http"):
            return url
        parts = url.split(f"/{self.bucket}/")
        if len(parts) > 1:
            return parts[1].split("?")[0]
        path = url.split("/sign/")[-1].split("?")[0]
        if path.startswith(f"{self.bucket}/"):
            path = path[len(self.bucket) + 1:]
        return path


_storage: Optional[SupabaseFileStorage] = None


def get_file_storage() -> SupabaseFileStorage:
    global _storage
    if _storage is None:
        _storage = SupabaseFileStorage()
    return _storage
