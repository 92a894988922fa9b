# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Stores and retrieves project STL files in Supabase Storage.
# Layout: projects/{project_id}/{file_id}.stl
# =============================================================================

import logging

from lib.supabase_client import SupabaseClient
from app.config import settings
from app.exceptions import StorageUploadError, StorageDownloadError

logger = logging.getLogger(__name__)

STL_CONTENT_TYPE = "model/stl"


class StorageService:
    """Service for Supabase Storage operations on model files."""

    @staticmethod
    def build_path(project_id: str, file_id: str) -> str:
        return f"projects/{project_id}/{file_id}.stl"

    @staticmethod
    def upload_file(storage_path: str, content: bytes) -> str:
        """
        Upload raw file content to storage.

        Returns:
            Storage path

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(settings.STORAGE_BUCKET).upload(
                path=storage_path,
                file=content,
                file_options={"content-type": STL_CONTENT_TYPE, "upsert": "true"}
            )
            logger.info(f"Uploaded file to storage: {storage_path} ({len(content)} bytes)")
            return storage_path

        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

    @staticmethod
    def download_file(storage_path: str) -> bytes:
        """
        Download raw file content from storage.

        Raises:
            StorageDownloadError: If download fails
        """
        client = SupabaseClient.get_client()

        try:
            content = client.storage.from_(settings.STORAGE_BUCKET).download(storage_path)
            logger.info(f"Downloaded file from storage: {storage_path}")
            return content

        except Exception as e:
            logger.error(f"Storage download failed: {e}")
            raise StorageDownloadError(storage_path, str(e))

    @staticmethod
    def delete_file(storage_path: str) -> bool:
        """Delete a file from storage. Returns False if storage refused."""
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(settings.STORAGE_BUCKET).remove([storage_path])
            logger.info(f"Deleted file from storage: {storage_path}")
            return True

        except Exception as e:
            logger.error(f"Failed to delete file: {e}")
            return False
