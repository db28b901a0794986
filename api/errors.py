import logging
import re
from typing import Optional
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from models.errors import ErrorPageView, FrontError

router = APIRouter()
logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_status(value: Optional[str], default: int = 500) -> int:
    """Leading integer of the value, like the browser's parseInt."""
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else default


@router.get("/error", response_model=ErrorPageView, tags=["errors"])
async def error_page(message: Optional[str] = None, status: Optional[str] = None):
    return ErrorPageView.build(parse_status(status), message)


async def front_error_handler(request: Request, exc: FrontError):
    logger.error("%s error on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def not_found_handler(request: Request, exc: Exception):
    page = ErrorPageView.build(404, "The requested page could not be found.")
    return JSONResponse(status_code=404, content=page.model_dump())
