"""FreightDesk - Admin console API for the freight marketplace"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from freightdesk.core.config import get_settings
from freightdesk.core.logging import configure_logging, logger
from freightdesk.routers import events, invoices, loads, pricing


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(
        "FreightDesk API starting",
        version="0.1.0",
        marketplace_api_url=settings.marketplace_base_url(),
        auth_enabled=settings.auth_enabled,
    )
    yield
    # Shutdown
    logger.info("FreightDesk API shutting down")


app = FastAPI(
    title="FreightDesk API",
    description="Admin console backend - load status, pricing estimates and invoice composition",
    version="0.1.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(loads.router)
app.include_router(pricing.router)
app.include_router(invoices.router)
app.include_router(events.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "FreightDesk API",
        "version": "0.1.0",
        "description": "Admin console backend for the freight marketplace",
        "endpoints": {
            "loads": "/loads",
            "pricing": "/pricing",
            "invoices": "/invoices",
            "events": "/events",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
