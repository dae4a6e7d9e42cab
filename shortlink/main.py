"""FastAPI application entry point for the short-link service.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ startup:     │
    │ store, cache,│
    │ sweeper task │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ shutdown:    │
    │ stop sweeper,│
    │ drain clicks,│
    │ close db     │
    └──────────────┘

How to Use
===========
**Run with uvicorn**::
    uvicorn shortlink.main:app --host 0.0.0.0 --port 8000

**Run without a database**::
    STORE_BACKEND=memory uvicorn shortlink.main:app

**Create a link**::
    curl -X POST http://localhost:8000/api/shorten \
         -H "Content-Type: application/json" \
         -d '{"content": "https://example.com", "useAI": true}'

Key Behaviours
===============
- Service errors and request validation errors are answered with
  ``{"error": message}`` and the mapped status code.
- Prometheus metrics are exposed at /metrics.
"""

__all__ = ["app"]

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from shortlink.config import get_settings
from shortlink.dependencies import _service_manager
from shortlink.exceptions import ShortLinkError
from shortlink.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await _service_manager.initialize()
    yield
    # Shutdown
    await _service_manager.cleanup()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Short links for URLs and text, with click counting",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShortLinkError)
async def shortlink_error_handler(request: Request, exc: ShortLinkError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc) or exc.error_code})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.getLogger("shortlink").exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error, please try again later"})


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
