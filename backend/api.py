"""
Hearth API Endpoints
"""

import math
import os
import sys
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

# Add core to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.hearth.models import HeatingCoolingState
from core.hearth.thermostat import Thermostat
from core.hearth.thermostat_service import ThermostatService

router = APIRouter()

APP_VERSION = "0.3.0"


class SetTargetTemperatureRequest(BaseModel):
    """Request body for setting the target temperature."""

    model_config = ConfigDict(populate_by_name=True)

    target_temperature: float = Field(alias="targetTemperature", strict=True)


class SetTargetStateRequest(BaseModel):
    """Request body for setting the target heating/cooling state (0-3 or name)."""

    model_config = ConfigDict(populate_by_name=True)

    target_heating_cooling_state: int | str = Field(alias="targetHeatingCoolingState")


def get_service(request: Request) -> ThermostatService:
    service = getattr(request.app.state, "thermostat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Thermostat service not initialized")
    return service


def _state_payload(thermostat: Thermostat) -> dict:
    state = thermostat.state
    return {
        "currentTemperature": state.current_temperature,
        "currentRelativeHumidity": state.current_relative_humidity,
        "targetTemperature": state.target_temperature,
        "currentHeatingCoolingState": int(state.current_heating_cooling_state),
        "currentHeatingCoolingStateName": state.current_heating_cooling_state.name,
        "targetHeatingCoolingState": int(state.target_heating_cooling_state),
        "targetHeatingCoolingStateName": state.target_heating_cooling_state.name,
        "temperatureDisplayUnits": int(state.temperature_display_units),
        "heatIndex": thermostat.heat_index,
        "retries": thermostat.retries,
        "alert": thermostat.alert,
    }


@router.get("/api/health")
async def health_check(request: Request):
    """Health check endpoint."""
    service = getattr(request.app.state, "thermostat_service", None)
    return {
        "status": "healthy",
        "app": "Hearth",
        "version": APP_VERSION,
        "control_loop_running": bool(service and service.running),
    }


@router.get("/api/thermostat")
async def get_thermostat(request: Request):
    """Full thermostat state."""
    service = get_service(request)
    return _state_payload(service.thermostat)


@router.get("/api/thermostat/current-temperature")
async def get_current_temperature(request: Request):
    service = get_service(request)
    return {"currentTemperature": service.thermostat.state.current_temperature}


@router.get("/api/thermostat/target-temperature")
async def get_target_temperature(request: Request):
    service = get_service(request)
    return {"targetTemperature": service.thermostat.state.target_temperature}


@router.get("/api/thermostat/current-state")
async def get_current_state(request: Request):
    state = get_service(request).thermostat.state.current_heating_cooling_state
    return {"currentHeatingCoolingState": int(state), "name": state.name}


@router.get("/api/thermostat/target-state")
async def get_target_state(request: Request):
    state = get_service(request).thermostat.state.target_heating_cooling_state
    return {"targetHeatingCoolingState": int(state), "name": state.name}


@router.api_route("/api/thermostat/target-temperature", methods=["PUT", "POST"])
async def set_target_temperature(request: Request, body: SetTargetTemperatureRequest):
    """Set the target temperature and evaluate immediately."""
    service = get_service(request)
    value = body.target_temperature

    if not math.isfinite(value):
        raise HTTPException(status_code=400, detail="targetTemperature is not a finite number")

    allowed = service.thermostat.config.target_temperature_range
    if not allowed.contains(value):
        raise HTTPException(
            status_code=400,
            detail=f"Temperature is not within acceptable range {allowed.min}-{allowed.max}",
        )

    previous, new = await service.set_target_temperature(value)

    return {
        "previousTargetTemperature": previous,
        "newTargetTemperature": new,
        "success": True,
    }


@router.api_route("/api/thermostat/target-state", methods=["PUT", "POST"])
async def set_target_state(request: Request, body: SetTargetStateRequest):
    """Set the target heating/cooling state and evaluate immediately."""
    service = get_service(request)

    try:
        value = HeatingCoolingState.parse(body.target_heating_cooling_state)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    previous, new = await service.set_target_heating_cooling_state(value)

    return {
        "previousTargetHeatingCoolingState": int(previous),
        "newTargetHeatingCoolingState": int(new),
        "success": True,
    }


@router.get("/api/thermostat/thresholds")
async def get_thresholds(request: Request):
    """Thresholds for the current target temperature."""
    service = get_service(request)
    return service.thermostat.thresholds().to_dict()


@router.get("/api/thermostat/deltas")
async def get_deltas(request: Request):
    """Temperature drift over the trailing windows (null when a window has no samples)."""
    service = get_service(request)
    return service.thermostat.deltas().to_dict()


@router.get("/api/thermostat/history")
async def get_history(request: Request, hours: float | None = None):
    """Temperature history.

    Args:
        hours: How many hours back (default: everything retained)
    """
    service = get_service(request)
    entries = service.thermostat.history.entries(hours=hours)
    return {
        "hours": hours,
        "count": len(entries),
        "history": [e.to_dict() for e in entries],
    }


@router.post("/api/thermostat/evaluate")
async def evaluate(request: Request):
    """Run an evaluation now with the last known reading."""
    service = get_service(request)
    result = await service.evaluate_now()
    logger.info(f"Manual evaluation: {result.previous_state.name} -> {result.current_state.name}")

    return {
        "previousState": int(result.previous_state),
        "currentState": int(result.current_state),
        "transitioned": result.transitioned,
        "retries": result.retries,
        "alert": result.alert,
        "exceededDeltas": result.exceeded_deltas,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/api/relays")
async def get_relays(request: Request):
    """Configured relay switches and their last known state."""
    service = get_service(request)
    relays = service.thermostat.relays
    return {
        "hostname": relays.settings.hostname,
        "switches": [s.to_dict() for s in relays.switches],
    }
