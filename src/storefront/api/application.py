"""FastAPI application factory.

Everything the routes need (settings, payment gateway, identity verifier) is
constructed here once and hung off ``app.state``; routes receive it through
dependencies. Tests pass their own gateway and verifier.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.admin import admin_router
from storefront.api.errors import register_error_handlers
from storefront.api.orders import order_router
from storefront.api.payments import payment_router
from storefront.api.products import product_router
from storefront.api.users import user_router
from storefront.config import Settings
from storefront.domain import storefront
from storefront.gateway import build_gateway
from storefront.gateway.port import PaymentGateway
from storefront.user.verifier import IdentityVerifier, JWTIdentityVerifier
from storefront.utils.logging import add_context, clear_context


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close = getattr(app.state.gateway, "aclose", None)
    if close is not None:
        await close()


def create_app(
    settings: Settings | None = None,
    gateway: PaymentGateway | None = None,
    verifier: IdentityVerifier | None = None,
) -> FastAPI:
    """Build the ASGI app. ``storefront.init()`` must already have run."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Storefront API",
        description="Catalog, orders, PayPal checkout and back-office",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gateway = gateway or build_gateway(settings)
    app.state.verifier = verifier or JWTIdentityVerifier(settings.identity)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context and bind request log context."""
        clear_context()
        add_context(method=request.method, path=request.url.path)
        with storefront.domain_context():
            return await call_next(request)

    register_error_handlers(app)

    app.include_router(product_router)
    app.include_router(order_router)
    app.include_router(user_router)
    app.include_router(payment_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domain": storefront.name,
                "environment": settings.environment,
                "gateway": type(app.state.gateway).__name__,
            }
        )

    return app
