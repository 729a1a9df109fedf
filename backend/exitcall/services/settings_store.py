from typing import Any, Dict, Optional, Union
import logging

from ..constants import DEFAULT_CALLER, DEFAULT_DELAY_SECONDS, DEFAULT_RINGTONE
from ..db import get_db
from ..errors import StoreUnavailable
from ..schemas.pydantic_schemas import SettingsRead, SettingsUpdate

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = ("selected_caller", "delay_seconds", "ringtone", "custom_ringtone_url")


def default_settings() -> Dict[str, Any]:
    return {
        "selected_caller": DEFAULT_CALLER,
        "delay_seconds": DEFAULT_DELAY_SECONDS,
        "ringtone": DEFAULT_RINGTONE,
        "custom_ringtone_url": None,
    }


def _to_settings(row: Optional[Dict[str, Any]]) -> SettingsRead:
    merged = default_settings()
    for k in SETTINGS_FIELDS:
        if row and row.get(k) is not None:
            merged[k] = row[k]
    return SettingsRead(**merged)


def load_settings() -> SettingsRead:
    """Return the saved settings, or the defaults when none exist or the store is down."""
    try:
        row = get_db().get_settings()
    except StoreUnavailable as e:
        logger.warning(f"Settings unavailable, using defaults: {e}")
        return _to_settings(None)
    return _to_settings(row)


def save_settings(update: Union[SettingsUpdate, Dict[str, Any]]) -> SettingsRead:
    if not isinstance(update, SettingsUpdate):
        update = SettingsUpdate.model_validate(update)
    patch = update.to_patch()
    row = get_db().upsert_settings(patch, default_settings())
    logger.info(f"Saved settings fields: {sorted(patch)}")
    return _to_settings(row)
