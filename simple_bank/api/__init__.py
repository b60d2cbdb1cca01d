"""
Simple Bank API Application Factory
"""

from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn

from .accounts import router as accounts_router
from .. import __version__
from ..config import get_config
from ..exceptions import InvalidAmountError, AccountNotFoundError, InsufficientFundsError
from ..ledger import LedgerStore
from ..logging_config import setup_logging
from ..storage import create_storage


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(ledger: Optional[LedgerStore] = None,
               static_dir: Optional[str] = None) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        ledger: Ledger store to serve; built from configuration if omitted
        static_dir: Browser UI directory mounted at /; taken from
            configuration if omitted
    """
    config = get_config()
    if ledger is None:
        setup_logging(config.log_level, config.log_format, config.log_file)
        ledger = LedgerStore(create_storage(config.data_url))
    if static_dir is None:
        static_dir = config.static_dir

    app = FastAPI(
        title="Simple Bank API",
        description="Demonstration banking ledger",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.ledger = ledger

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidAmountError)
    async def invalid_amount_handler(request: Request, exc: InvalidAmountError):
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid amount")

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(request: Request, exc: InsufficientFundsError):
        return _error_response(status.HTTP_400_BAD_REQUEST, "Insufficient funds")

    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(request: Request, exc: AccountNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, "Account not found")

    app.include_router(accounts_router, prefix="/api/accounts", tags=["Accounts"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "simple_bank_api",
            "version": __version__
        }

    # Mounted last so API routes take precedence
    if static_dir:
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "simple_bank.api:create_app",
        factory=True,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
