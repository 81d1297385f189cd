import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oss_gateway.config import get_cors_allow_origins, get_log_level, get_port
from oss_gateway.routers import oss_router
from oss_gateway.schemas.oss import HealthResponse

SERVICE_NAME = "Aliyun OSS Signature API"
SERVICE_VERSION = "1.0.0"

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=SERVICE_NAME,
    description="Signs and performs Aliyun OSS object uploads on behalf of callers",
    version=SERVICE_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_allow_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(oss_router)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request body")
    if location:
        message = f"{location}: {message}"
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body", "message": message},
    )


@app.get("/", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)


def run() -> None:
    port = get_port()
    logger.info("OSS Signature API listening on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=get_log_level().lower())
