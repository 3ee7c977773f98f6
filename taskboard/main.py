# taskboard/main.py
"""FastAPI application for the task manager API."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard import config
from taskboard.backends import KeyValueStore, get_kv_store, open_store
from taskboard.errors import ErrorCode, TaskboardError, error_body
from taskboard.routes.tasks import router as tasks_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the key-value store before serving and close it on shutdown."""
    app.state.kv_store = open_store(config.STORE_BACKEND)
    yield
    app.state.kv_store.close()


app = FastAPI(title="Taskboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, execution time and status for every request."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "[%s] %s - Execution time: %.2f ms | Status: %d",
        request.method, request.url.path, elapsed_ms, response.status_code,
    )
    return response


app.include_router(tasks_router)


@app.get("/health")
def health_check(kv_store: KeyValueStore = Depends(get_kv_store)):
    """Health check endpoint. Reports whether the store answers."""
    try:
        kv_store.ping()
    except Exception as exc:
        logger.warning("Health check: %s store unreachable: %s", kv_store.name, exc)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": "taskboard-api", "store": kv_store.name},
        )
    return {"status": "healthy", "service": "taskboard-api", "store": kv_store.name}


# -- error mapping ----------------------------------------------------------------

@app.exception_handler(TaskboardError)
async def handle_taskboard_error(request: Request, exc: TaskboardError) -> JSONResponse:
    endpoint = f"{request.method} {request.url.path}"
    if not exc.is_operational:
        logger.error("%s failed: %s", endpoint, exc.message, exc_info=exc)
        body = error_body("Internal Server Error", ErrorCode.INTERNAL_ERROR, 500)
        return JSONResponse(status_code=500, content=body)

    logger.warning("%s rejected (%s): %s", endpoint, exc.error_code.value, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [str(error.get("msg", "Invalid request")) for error in exc.errors()]
    logger.warning("%s %s malformed request: %s", request.method, request.url.path, messages)
    body = error_body("; ".join(messages) or "Invalid request", ErrorCode.VALIDATION_ERROR, 400)
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        logger.warning("Route not found: %s %s", request.method, request.url.path)
        body = error_body("Route not found", ErrorCode.NOT_FOUND, 404)
    else:
        body = error_body(str(exc.detail), ErrorCode.BAD_REQUEST, exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = error_body("Internal Server Error", ErrorCode.INTERNAL_ERROR, 500)
    return JSONResponse(status_code=500, content=body)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("taskboard.main:app", host=config.HOST, port=config.PORT)
