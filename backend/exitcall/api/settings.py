from fastapi import APIRouter, File, HTTPException, UploadFile
import logging

from ..errors import StoreUnavailable, UnsupportedUpload
from ..schemas.pydantic_schemas import SettingsRead, SettingsUpdate
from ..services.ringtone_upload import upload_custom_ringtone
from ..services.settings_store import load_settings, save_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=SettingsRead)
async def get_settings():
    return load_settings()


@router.put("/", response_model=SettingsRead)
async def update_settings(body: SettingsUpdate):
    try:
        return save_settings(body)
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Could not save settings")


@router.post("/ringtone", response_model=SettingsRead)
async def upload_ringtone(file: UploadFile = File(...)):
    data = await file.read()
    try:
        return upload_custom_ringtone(file.filename or "ringtone", file.content_type, data)
    except UnsupportedUpload as e:
        raise HTTPException(status_code=415, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Failed to upload ringtone")
