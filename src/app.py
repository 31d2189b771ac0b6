"""Storefront FastAPI application.

Web server for the storefront: catalogue browsing, carts, checkout and the
order back-office. Every request runs inside the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from [tool.protean] in pyproject.toml.
from fastapi.responses import JSONResponse
from storefront.config import settings
from storefront.domain import storefront
from storefront.utils.logging import configure_logging

configure_logging(json=settings.LOG_JSON)
storefront.init()

from storefront.api.app import create_app  # noqa: E402

app = create_app()


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "currency": settings.CURRENCY,
        }
    )
