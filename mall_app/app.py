import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from mall_app.core.catch_error_middleware import ErrorHandlerMiddleware
from mall_app.core.errors import DashboardError
from mall_app.core.exception_handler import DomainErrorHandler, ValidationErrorHandler
from mall_app.core.lifespan import lifespan
from mall_app.core.settings import settings
from mall_app.realtime.change_routes import router as change_router
from mall_app.routes.currency_routes import router as currency_router
from mall_app.routes.dashboard_routes import router as dashboard_router
from mall_app.routes.lease_routes import router as lease_router
from mall_app.routes.maintenance_routes import router as maintenance_router
from mall_app.routes.notice_routes import router as notice_router
from mall_app.routes.payment_method_routes import router as payment_method_router
from mall_app.routes.payment_routes import router as payment_router
from mall_app.routes.profile_routes import router as profile_router
from mall_app.routes.property_routes import router as property_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        lifespan=lifespan if use_lifespan else None,
        title=settings.PROJECT_NAME,
        version="1.0.0",
    )

    prefix = settings.API_PREFIX
    app.include_router(profile_router, prefix=f"{prefix}/profiles")
    app.include_router(currency_router, prefix=f"{prefix}/currency")
    app.include_router(property_router, prefix=f"{prefix}/properties")
    app.include_router(lease_router, prefix=f"{prefix}/leases")
    app.include_router(payment_router, prefix=f"{prefix}/payments")
    app.include_router(payment_method_router, prefix=f"{prefix}/payment-methods")
    app.include_router(maintenance_router, prefix=f"{prefix}/maintenance")
    app.include_router(notice_router, prefix=f"{prefix}/notices")
    app.include_router(dashboard_router, prefix=f"{prefix}/dashboard")
    app.include_router(change_router, prefix=prefix)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "ok"}

    app.add_exception_handler(DashboardError, DomainErrorHandler())
    app.add_exception_handler(RequestValidationError, ValidationErrorHandler())
    app.add_middleware(ErrorHandlerMiddleware)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("mall_app.app:app", host="127.0.0.1", port=8001, reload=True)
