from pathlib import Path
from typing import Optional
from uuid import uuid4
import os
import logging

from ..db import get_supabase_client
from ..errors import StoreUnavailable, UnsupportedUpload
from ..schemas.pydantic_schemas import SettingsRead
from .settings_store import save_settings

logger = logging.getLogger(__name__)


def is_audio(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("audio/")


def _object_name(filename: str) -> str:
    suffix = Path(filename or "").suffix.lower()
    return f"{uuid4().hex}{suffix}"


class RingtoneUploader:
    """Stores an uploaded audio file and returns a durable URL for it.

    Goes to the Supabase storage bucket when Supabase is configured, otherwise
    to a local directory (file:// URL).
    """

    def __init__(self, bucket: Optional[str] = None, upload_dir: Optional[str] = None) -> None:
        self.bucket = bucket or os.getenv("RINGTONE_BUCKET", "ringtones")
        self.upload_dir = Path(upload_dir or os.getenv("UPLOAD_DIR", "uploads"))

    def upload(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        if not is_audio(content_type):
            logger.warning(f"Rejected ringtone upload {filename!r} ({content_type})")
            raise UnsupportedUpload(filename, content_type or "")
        name = _object_name(filename)
        client = get_supabase_client()
        if client is not None:
            return self._upload_supabase(client, name, content_type, data)
        return self._upload_local(name, data)

    def _upload_supabase(self, client, name: str, content_type: str, data: bytes) -> str:
        bucket = client.storage.from_(self.bucket)
        try:
            bucket.upload(path=name, file=data, file_options={"content-type": content_type})
            url = bucket.get_public_url(name)
        except Exception as e:
            logger.error(f"Ringtone upload to bucket {self.bucket} failed: {e}")
            raise StoreUnavailable("Failed to upload ringtone") from e
        logger.info(f"Uploaded ringtone to {url}")
        return url

    def _upload_local(self, name: str, data: bytes) -> str:
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path = self.upload_dir / name
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Writing ringtone to {self.upload_dir} failed: {e}")
            raise StoreUnavailable("Failed to upload ringtone") from e
        url = path.resolve().as_uri()
        logger.info(f"Stored ringtone at {url}")
        return url


def upload_custom_ringtone(filename: str, content_type: Optional[str], data: bytes, uploader: Optional[RingtoneUploader] = None) -> SettingsRead:
    """Upload then point the settings at it. On any failure the previous ringtone stays selected."""
    url = (uploader or RingtoneUploader()).upload(filename, content_type, data)
    return save_settings({"custom_ringtone_url": url})
