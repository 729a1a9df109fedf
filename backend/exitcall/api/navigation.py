from fastapi import APIRouter

from ..schemas.pydantic_schemas import NavigationRead
from ..services.call_session import get_call_machine
from ..services.navigation import create_page_url

router = APIRouter()


@router.get("/", response_model=NavigationRead)
async def current_route():
    return get_call_machine().navigator.current


@router.get("/url")
async def current_url():
    return {"url": create_page_url(get_call_machine().navigator.current)}
