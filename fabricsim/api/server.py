"""
FastAPI server for FabricSim

This module implements the REST API server around one SimulationEngine.
The engine lives on the application state, is created when the server starts
(settings are validated then) and runs its flows on the server's event loop.
"""

import uvicorn
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from fabricsim.api.v1.endpoints import router as v1_router
from fabricsim.config.settings import Settings, get_settings
from fabricsim.core.simulation_engine import SimulationEngine

logger = logging.getLogger(__name__)


def create_app(engine: SimulationEngine | None = None, settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application"""

    settings = settings or get_settings()
    api_config = settings.get_api_config()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """Application lifespan events"""
        logger.info("Starting FabricSim API server...")
        if _app.state.engine is None:
            _app.state.engine = SimulationEngine(settings=settings)
        yield
        # Shutdown
        _app.state.engine.reset()
        logger.info("Shutting down FabricSim API server...")

    fast_app = FastAPI(
        title="FabricSim API",
        description="REST API for simulating transaction flows through a permissioned blockchain network",
        version=api_config["version"],
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    # Created in lifespan when not supplied
    fast_app.state.engine = engine

    # Add CORS middleware
    fast_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fast_app.include_router(v1_router)
    logger.info("API v1 router included successfully")

    @fast_app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "FabricSim API",
            "version": api_config["version"],
            "docs": "/docs",
        }

    return fast_app


def run_server(host: str | None = None, port: int | None = None, settings: Settings | None = None):
    """Run the API server with uvicorn"""
    settings = settings or get_settings()
    api_config = settings.get_api_config()
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
    uvicorn.run(
        create_app(settings=settings),
        host=host or api_config["host"],
        port=port or api_config["port"],
    )


app = create_app()
