import logging
from typing import Optional, Type, TypeVar

from beanie import Document, PydanticObjectId
from bson import ObjectId
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Document)


def parse_object_id(value: Optional[str]) -> Optional[PydanticObjectId]:
    """Return a PydanticObjectId, or None when the value is not a valid id"""
    if value is None:
        return None
    if isinstance(value, ObjectId):
        return PydanticObjectId(value)
    if not ObjectId.is_valid(str(value)):
        return None
    return PydanticObjectId(str(value))


def require_object_id(value: Optional[str], field: str) -> PydanticObjectId:
    oid = parse_object_id(value)
    if oid is None:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")
    return oid


async def get_or_404(model: Type[D], doc_id, detail: str) -> D:
    """Load a document by id; unknown and malformed ids are both a 404"""
    oid = parse_object_id(doc_id)
    doc = await model.get(oid) if oid else None
    if doc is None:
        raise HTTPException(status_code=404, detail=detail)
    return doc


def ensure_same_company(doc, user, detail: str = "You don't have permission to access this resource") -> None:
    if getattr(doc, "company_id", None) != user.company_id:
        raise HTTPException(status_code=403, detail=detail)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Validation failed"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", []) if p not in ("body", "query", "path")]
    msg = first.get("msg", "Invalid value")
    # pydantic prefixes messages raised from validators
    msg = msg.replace("Value error, ", "")
    if loc:
        return f"{'.'.join(loc)}: {msg}"
    return msg


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Validation error for %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": _validation_message(exc)},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception for %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": str(exc) or "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
