"""REST API routes: sensor data, pump control, control mode, status."""

import logging
from typing import Any, Optional, Union

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, StrictBool

from control import InvalidInputError, InvalidReportError, ModeConflictError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["api"])


# Request/response models
class SensorDataRequest(BaseModel):
    """Sensor report from the field device. All four readings are required by the coordinator."""
    model_config = ConfigDict(allow_inf_nan=False)

    temperature: Optional[Union[int, float]] = None
    humidity: Optional[Union[int, float]] = None
    soil_moisture_percentage_1: Optional[Union[int, float]] = None
    soil_moisture_percentage_2: Optional[Union[int, float]] = None
    timestamp: Optional[Any] = None  # device clock, ignored
    pump_actual_state: Optional[Any] = None


class TelemetryResponse(BaseModel):
    """Latest telemetry snapshot (all null until the first report)."""
    temperature: Optional[Union[int, float]]
    humidity: Optional[Union[int, float]]
    soil_moisture_percentage_1: Optional[Union[int, float]]
    soil_moisture_percentage_2: Optional[Union[int, float]]
    timestamp: Optional[str]
    pump_actual_state: bool


class PumpControlRequest(BaseModel):
    """Manual pump command from the web client."""
    status: Optional[StrictBool] = None


class ControlModeRequest(BaseModel):
    """Set control mode: 'manual' or 'autoFuzzy'."""
    mode: Optional[str] = None


def get_coordinator():
    """Get the state coordinator from the main module."""
    from .main import get_system_state
    coordinator = get_system_state()['coordinator']
    if coordinator is None:
        raise HTTPException(status_code=503, detail="Coordinator not initialized")
    return coordinator


def _message(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


@router.post("/sensor_data")
async def post_sensor_data(request: SensorDataRequest):
    """Receive a sensor report from the device."""
    coordinator = get_coordinator()
    try:
        snapshot = coordinator.ingest_telemetry(request.model_dump())
    except InvalidReportError:
        return _message(400, "Incomplete sensor data")
    except InvalidInputError as e:
        return _message(400, str(e))
    return {"message": "Sensor data received", "data": snapshot.to_dict()}


@router.get("/sensor_data", response_model=TelemetryResponse)
async def get_sensor_data():
    """Latest sensor readings for the web client."""
    return get_coordinator().get_telemetry().to_dict()


@router.post("/pump_control")
async def pump_control(request: PumpControlRequest):
    """Manual pump command (manual mode only)."""
    coordinator = get_coordinator()
    try:
        pump_status, mode = coordinator.set_pump_command(request.status)
    except InvalidInputError:
        return _message(400, "Invalid pump status. Expected true/false.")
    except ModeConflictError as e:
        return _message(403, str(e), current_pump_status=e.pump_status,
                        control_mode=e.mode.value)
    return {
        "message": "Manual pump command accepted",
        "pump_status": pump_status,
        "control_mode": mode.value,
    }


@router.get("/pump_manual_status")
async def pump_manual_status():
    """Desired manual pump status, polled by the device."""
    pump_status, mode = get_coordinator().get_pump_command()
    return {"pump_status": pump_status, "control_mode": mode.value}


@router.get("/control_mode")
async def get_control_mode():
    """Current control mode."""
    return {"mode": get_coordinator().get_control_mode().value}


@router.post("/control_mode")
async def set_control_mode(request: ControlModeRequest):
    """Switch control mode between manual/autoFuzzy."""
    coordinator = get_coordinator()
    try:
        mode = coordinator.set_control_mode(request.mode)
    except InvalidInputError:
        return _message(400, 'Invalid control mode. Expected "manual" or "autoFuzzy".')
    return {"message": f"Control mode set to {mode.value}", "current_mode": mode.value}


@router.get("/status")
async def get_status():
    """Get service status."""
    from .main import get_system_state
    state = get_system_state()
    try:
        return {"running": state['running'], **get_coordinator().get_status()}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting status: {e}")
        raise HTTPException(status_code=500, detail=str(e))
