"""
Hearth Backend Application

FastAPI application hosting the thermostat API and the control loop.
"""

import os
import sys
from contextlib import asynccontextmanager

import log_config  # noqa: F401
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

# Add core to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from api import router as api_router

from core.hearth.config_store import ConfigStore
from core.hearth.data_log import DataLog
from core.hearth.history import TemperatureHistory
from core.hearth.relay import RelaySet
from core.hearth.sensor_client import SensorClient
from core.hearth.thermostat import Thermostat
from core.hearth.thermostat_service import ThermostatService
from core.hearth.thresholds import ThresholdCalculator
from core.hearth.weather_client import WeatherClient

ROOT_DIR = os.path.join(os.path.dirname(__file__), "..")
CONFIG_PATH = os.getenv("HEARTH_CONFIG", os.path.join(ROOT_DIR, "config.json"))
DEFAULTS_PATH = os.getenv("HEARTH_DEFAULTS", os.path.join(ROOT_DIR, "config.yaml"))
DATA_DIR = os.getenv("HEARTH_DATA_DIR", os.path.join(ROOT_DIR, "data"))

config_store = ConfigStore(CONFIG_PATH, defaults_path=DEFAULTS_PATH)


def build_service(store: ConfigStore, data_dir: str) -> ThermostatService:
    """Wire the control loop around one loaded config."""
    config = store.load()

    relays = RelaySet(config.relay)
    thermostat = Thermostat(
        config,
        relays,
        TemperatureHistory(),
        threshold_calculator=ThresholdCalculator(),
        config_store=store,
    )

    weather_client = None
    if config.weather_map_api_key.strip():
        weather_client = WeatherClient(config.weather_map_api_key, config.weather_location)

    return ThermostatService(
        thermostat,
        SensorClient(config.temperature_sensor),
        weather_client=weather_client,
        data_log=DataLog(data_dir),
        evaluation_interval_seconds=60,
        forecast_interval_seconds=300,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for startup/shutdown."""
    # Startup
    logger.info("Hearth starting")

    routes = [
        f"{getattr(route, 'path', '?')} - {getattr(route, 'methods', ['MOUNT'])}"
        for route in app.routes
    ]
    logger.info(f"Registered routes: {routes}")

    service = build_service(config_store, DATA_DIR)
    if not service.sensor_client.url:
        logger.warning("⚠️ No temperature sensor configured, every cycle will skip evaluation")

    app.state.thermostat_service = service
    await service.start()

    yield

    # Shutdown
    logger.info("Hearth shutting down")
    await service.stop()


# Create FastAPI application
app = FastAPI(
    title="Hearth API",
    description="Thermostat controller for network relays and a remote temperature sensor",
    version="0.3.0",
    lifespan=lifespan,
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions gracefully."""
    import traceback

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    logger.error(f"Unhandled exception: {exc}")
    logger.error(f"Request path: {request.url.path}")
    logger.error(f"Stack trace:\n{tb_str}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "message": "Internal server error",
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    startup_config = config_store.load()
    uvicorn.run(app, host=startup_config.hostname, port=startup_config.port)
