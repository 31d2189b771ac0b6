"""The storefront FastAPI application: routers, error mapping and domain context."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.cart import cart_router
from storefront.api.catalogue import banner_router, category_router, combo_router, product_router
from storefront.api.deps import register_error_handlers
from storefront.api.orders import order_router

routers = [product_router, category_router, combo_router, banner_router, cart_router, order_router]


def create_app() -> FastAPI:
    """Build the API with every router, the error mapping and the domain-context middleware."""
    from storefront.domain import storefront

    app = FastAPI(
        title="Storefront API",
        description="Seasonal storefront: catalogue, carts, checkout and order lifecycle",
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
        with storefront.domain_context():
            response = await call_next(request)
        return response

    for router in routers:
        app.include_router(router)
    register_error_handlers(app)
    return app
