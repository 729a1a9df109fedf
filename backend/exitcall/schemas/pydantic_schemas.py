from pydantic import AfterValidator, AliasChoices, BaseModel, Field, PositiveInt
from typing import Annotated, Optional, List, Dict

from ..constants import (
    CALLERS,
    RINGTONES,
    DEFAULT_CALLER,
    DEFAULT_DELAY_SECONDS,
    DEFAULT_RINGTONE,
)


def _check_caller(value: str) -> str:
    if value not in CALLERS:
        raise ValueError(f"caller must be one of {', '.join(CALLERS)}")
    return value


def _check_ringtone(value: str) -> str:
    if value not in RINGTONES:
        raise ValueError(f"ringtone must be one of {', '.join(RINGTONES)}")
    return value


CallerName = Annotated[str, AfterValidator(_check_caller)]
RingtoneName = Annotated[str, AfterValidator(_check_ringtone)]


class SettingsRead(BaseModel):
    selected_caller: str = DEFAULT_CALLER
    delay_seconds: int = DEFAULT_DELAY_SECONDS
    ringtone: str = DEFAULT_RINGTONE
    custom_ringtone_url: Optional[str] = None


class SettingsUpdate(BaseModel):
    """Partial settings patch. Fields left as None keep their stored value."""

    selected_caller: Optional[CallerName] = Field(
        default=None, validation_alias=AliasChoices("selected_caller", "selectedCaller")
    )
    delay_seconds: Optional[PositiveInt] = Field(
        default=None, validation_alias=AliasChoices("delay_seconds", "delaySeconds")
    )
    ringtone: Optional[RingtoneName] = None
    custom_ringtone_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("custom_ringtone_url", "customRingtoneUrl")
    )
    # Drops the uploaded ringtone so the built-in one plays again
    clear_custom_ringtone: bool = Field(
        default=False, validation_alias=AliasChoices("clear_custom_ringtone", "clearCustomRingtone")
    )

    def to_patch(self) -> Dict[str, Optional[object]]:
        patch: Dict[str, Optional[object]] = {
            k: v
            for k, v in self.model_dump(exclude={"clear_custom_ringtone"}).items()
            if v is not None
        }
        if self.clear_custom_ringtone:
            patch["custom_ringtone_url"] = None
        return patch


class CallStartRequest(BaseModel):
    """Overrides for a single call. Anything omitted comes from the saved settings."""

    caller: Optional[CallerName] = None
    delay_seconds: Optional[PositiveInt] = Field(
        default=None, validation_alias=AliasChoices("delay_seconds", "delaySeconds")
    )
    ringtone: Optional[RingtoneName] = None


class CallStartResponse(BaseModel):
    session_id: str
    caller: str
    status: str
    delay_seconds: int
    ringtone_url: Optional[str] = None


class SessionRead(BaseModel):
    id: str
    caller: str
    status: str
    start_time: Optional[str]
    ended_time: Optional[str] = None
    ringtone_url: Optional[str] = None


class SessionListResponse(BaseModel):
    items: List[SessionRead]
    total: int


class NavigationRead(BaseModel):
    screen: str
    params: Dict[str, str] = Field(default_factory=dict)
