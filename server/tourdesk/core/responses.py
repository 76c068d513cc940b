"""Success envelope shared by every router."""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .query import PageResult


def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    status_code: int = 200,
) -> JSONResponse:
    """Build ``{success: true, message?, data?}``."""
    content: dict[str, Any] = {"success": True}
    if message:
        content["message"] = message
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def page_envelope(page: PageResult, items: list[Any]) -> JSONResponse:
    """Envelope for a paginated listing: ``data = {items, pagination}``."""
    return envelope({"items": items, "pagination": page.pagination})
