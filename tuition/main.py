import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tuition.api.v1.balances.router import router as balances_router
from tuition.api.v1.billing_items.router import router as billing_items_router
from tuition.api.v1.charges.router import router as charges_router
from tuition.api.v1.payments.router import router as payments_router
from tuition.api.v1.reports.router import router as reports_router
from tuition.core.config import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Tuition Ledger")

    # CORS: allow the admin frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(billing_items_router)
    app.include_router(charges_router)
    app.include_router(payments_router)
    app.include_router(balances_router)
    app.include_router(reports_router)

    return app


app = create_app()
