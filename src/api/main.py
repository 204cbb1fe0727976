"""FastAPI app: sensor ingestion, manual pump command and control mode for the field device."""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from control import DeviceStateCoordinator

from . import routes
from .config import ServerConfig, load_config

logger = logging.getLogger(__name__)

# Global system state
system_state = {
    'coordinator': None,
    'running': False,
}

ENDPOINTS = """
    Frontend (Web) Endpoints:
    - GET  /api/sensor_data        (Get latest sensor readings)
    - POST /api/pump_control       (Control pump in manual mode, e.g. {"status": true})
    - GET  /api/control_mode       (Get current control mode)
    - POST /api/control_mode       (Set control mode, e.g. {"mode": "autoFuzzy"})

    Device Endpoints:
    - POST /api/sensor_data        (Send sensor data)
    - GET  /api/control_mode       (Get current control mode)
    - GET  /api/pump_manual_status (Get desired manual pump status)"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("=" * 60)
    logger.info("IRRIGATION BRIDGE - STARTING")
    logger.info("=" * 60)

    system_state['coordinator'] = DeviceStateCoordinator()
    system_state['running'] = True
    logger.info("✓ State coordinator initialized")
    logger.info(ENDPOINTS)

    yield  # Application running

    logger.info("Shutting down...")
    system_state['running'] = False
    system_state['coordinator'] = None
    logger.info("✓ Shutdown complete")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies as 400 {message} instead of FastAPI's default 422."""
    errors = exc.errors()
    detail = errors[0].get('msg', 'invalid value') if errors else 'invalid value'
    logger.warning(f"Rejected request to {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"message": f"Invalid request body: {detail}"})


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    config = config or ServerConfig()

    app = FastAPI(
        title="Irrigation Bridge",
        description="State mediation between a soil-moisture/pump device and a web dashboard",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS middleware (allow dashboard and device access from any origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(routes.router, prefix="/api")
    return app


app = create_app(load_config())


def get_system_state():
    """Export system state for the routes module."""
    return system_state


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Irrigation bridge backend")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--host", type=str, default=None, help="Override network.host")
    parser.add_argument("--port", type=int, default=None, help="Override network.port")
    return parser.parse_args(argv)


def run(argv=None) -> None:
    import uvicorn

    args = parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )

    uvicorn.run(
        create_app(config),
        host=args.host or config.network.host,
        port=args.port or config.network.port,
    )


if __name__ == "__main__":
    run()
