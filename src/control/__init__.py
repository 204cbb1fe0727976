"""Control module: device state coordinator (telemetry, control mode, manual pump command)."""

from .errors import (
    CoordinatorError,
    InvalidInputError,
    InvalidModeError,
    InvalidReadingError,
    InvalidReportError,
    ModeConflictError,
)
from .state_coordinator import ControlMode, DeviceStateCoordinator, TelemetrySnapshot

__all__ = [
    'ControlMode',
    'DeviceStateCoordinator',
    'TelemetrySnapshot',
    'CoordinatorError',
    'InvalidInputError',
    'InvalidModeError',
    'InvalidReadingError',
    'InvalidReportError',
    'ModeConflictError',
]
