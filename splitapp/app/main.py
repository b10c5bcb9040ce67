"""
FastAPI Application Entry Point.

This is the main application file for the SplitApp Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from splitapp.app.core.config import settings
from splitapp.app.core.logging_config import configure_logging
from splitapp.app.core.observability import ObservabilityMiddleware
from splitapp.app.core.redis_client import token_store_status
from splitapp.app.api.v1.router import router as api_v1_router
from splitapp.app.db.session import engine, Base
from splitapp.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from splitapp.app.models.user import User
from splitapp.app.models.group import Group
from splitapp.app.models.expense import Expense, ExpenseSplit
from splitapp.app.models.notification import Notification

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Expense-splitting backend: groups, shared expenses, balances and settlements",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    
    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "token_store": await token_store_status(),
    }


@app.get("/ping", tags=["Health"], response_class=PlainTextResponse)
async def ping():
    """Liveness check for uptime monitors."""
    return "Pong! Server is awake."


app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to SplitApp Backend API",
        "docs": "/docs",
        "health": "/health",
    }
