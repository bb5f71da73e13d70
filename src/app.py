"""Storefront FastAPI application.

Web server for checkout, orders, payments and refunds. Commands are processed
synchronously inside each request.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.domain import storefront  # noqa: E402
from storefront.utils.logging import clear_request_context, configure_logging

configure_logging()
storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout, order lifecycle, payments and refunds",
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
    """Push the storefront domain context for each request."""
    clear_request_context()
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import order_router, payment_router, register_exception_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(payment_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": storefront.name},
        }
    )
