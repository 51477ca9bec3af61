"""Storefront FastAPI application.

Commands are processed synchronously per request inside the storefront
domain context. The caller is identified by the ``X-User-Id`` header.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import register_exception_handlers, routers
from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context, configure_logging

# PROTEAN_ENV selects the domain config overlay and the log level
configure_logging()
storefront.init()

app = FastAPI(
    title="Storefront API",
    description="Catalog, carts, promocodes, loyalty bonuses and orders",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and bind request fields to the log context."""
    clear_context()
    add_context(
        request_id=request.headers.get("x-request-id") or uuid4().hex,
        path=request.url.path,
        method=request.method,
    )
    with storefront.domain_context():
        response = await call_next(request)
    return response


for router in routers:
    app.include_router(router)

register_exception_handlers(app)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
