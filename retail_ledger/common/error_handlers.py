from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from retail_ledger.common.exceptions import ConsistencyViolation, LedgerError, StoreUnavailable
from retail_ledger.logger_config import logger


def register_error_handlers(app: FastAPI):
    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, e: LedgerError):
        if isinstance(e, ConsistencyViolation):
            logger.error(f"Consistency violation on {request.url.path}: {e}")
        elif isinstance(e, StoreUnavailable):
            logger.error(f"Store unavailable on {request.url.path}: {e}")

        return JSONResponse(
            status_code=e.status_code,
            content={
                "success": False,
                "message": str(e),
                "error": e.__class__.__name__,
                "status_code": e.status_code,
            },
        )

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        # Log the exception with traceback
        logger.exception("Unhandled exception occurred")

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal Server Error",
                "details": str(e),
                "status_code": 500,
            },
        )
