from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from retail_ledger import __version__
from retail_ledger.api.v1 import credit, finance, ledger, vendor
from retail_ledger.common.error_handlers import register_error_handlers
from retail_ledger.core.config import get_settings


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Retail Ledger", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register API routers
    app.include_router(finance.router, prefix="/api/v1/finance", tags=["finance"])
    app.include_router(ledger.router, prefix="/api/v1/ledger", tags=["ledger"])
    app.include_router(credit.router, prefix="/api/v1/credits", tags=["credits"])
    app.include_router(vendor.router, prefix="/api/v1/vendors", tags=["vendors"])

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Retail Ledger APIs!"}

    return app


app = create_app()
