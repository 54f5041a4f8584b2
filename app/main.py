# Run from project root: uvicorn app.main:app --reload

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


app = FastAPI(title="Post Preview Backend")
app.include_router(router)


@app.exception_handler(StarletteHTTPException)
async def http_error_envelope(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return HTTP errors in the same {status, data, message} envelope as successful responses."""
    logger.error("Error on %s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status_code, "data": None, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_envelope(request: Request, exc: Exception) -> JSONResponse:
    """Any unmapped failure becomes a 500 in the response envelope."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"status": 500, "data": None, "message": str(exc) or "Internal Server Error"},
    )
