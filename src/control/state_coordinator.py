"""Device state coordinator: latest telemetry, control mode and manual pump command."""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .errors import (
    InvalidInputError, InvalidModeError, InvalidReadingError, InvalidReportError, ModeConflictError
)

logger = logging.getLogger(__name__)

# Readings are echoed as sent, integers stay integers
Reading = Union[int, float]


class ControlMode(str, Enum):
    """Which side is authoritative for the pump."""
    MANUAL = 'manual'
    AUTO_FUZZY = 'autoFuzzy'

    @classmethod
    def parse(cls, value: Union['ControlMode', str, None]) -> 'ControlMode':
        """Accept an enum member or its literal, reject anything else."""
        if isinstance(value, cls):
            return value
        for mode in cls:
            if isinstance(value, str) and value == mode.value:
                return mode
        raise InvalidModeError(value)


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Most recent sensor report. Replaced wholesale, never edited in place."""
    temperature: Optional[Reading] = None
    humidity: Optional[Reading] = None
    soil_moisture_percentage_1: Optional[Reading] = None
    soil_moisture_percentage_2: Optional[Reading] = None
    observed_at: Optional[datetime] = None
    pump_actual_state: bool = False

    @property
    def is_empty(self) -> bool:
        return self.observed_at is None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape, timestamp as ISO-8601 UTC with millisecond precision."""
        timestamp = None
        if self.observed_at is not None:
            timestamp = self.observed_at.astimezone(timezone.utc).isoformat(timespec='milliseconds')
            timestamp = timestamp.replace('+00:00', 'Z')
        return {
            'temperature': self.temperature,
            'humidity': self.humidity,
            'soil_moisture_percentage_1': self.soil_moisture_percentage_1,
            'soil_moisture_percentage_2': self.soil_moisture_percentage_2,
            'timestamp': timestamp,
            'pump_actual_state': self.pump_actual_state,
        }


REQUIRED_SENSOR_FIELDS = (
    'temperature', 'humidity', 'soil_moisture_percentage_1', 'soil_moisture_percentage_2'
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceStateCoordinator:
    """Shared state between the field device and the web client.

    One lock covers the snapshot, the mode and the manual command so that no
    caller sees a half-applied change, in particular AutoFuzzy paired with a
    stale ``True`` command.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = threading.Lock()
        self._telemetry = TelemetrySnapshot()
        self._mode = ControlMode.MANUAL
        self._pump_command = False
        logger.info("DeviceStateCoordinator initialized (mode=manual, pump=OFF)")

    # Telemetry

    def ingest_telemetry(self, report: Mapping[str, Any]) -> TelemetrySnapshot:
        """Replace the snapshot with a complete report; client timestamps are ignored."""
        missing = [name for name in REQUIRED_SENSOR_FIELDS if report.get(name) is None]
        if missing:
            logger.warning(f"Rejected incomplete sensor report, missing {missing}")
            raise InvalidReportError(missing)

        non_finite = [name for name in REQUIRED_SENSOR_FIELDS
                      if isinstance(report[name], float) and not math.isfinite(report[name])]
        if non_finite:
            logger.warning(f"Rejected sensor report with non-finite values in {non_finite}")
            raise InvalidReadingError(non_finite)

        reported_pump = report.get('pump_actual_state')
        with self._lock:
            observed_at = self._clock()
            previous = self._telemetry
            if previous.observed_at is not None and observed_at < previous.observed_at:
                observed_at = previous.observed_at
            self._telemetry = TelemetrySnapshot(
                temperature=report['temperature'],
                humidity=report['humidity'],
                soil_moisture_percentage_1=report['soil_moisture_percentage_1'],
                soil_moisture_percentage_2=report['soil_moisture_percentage_2'],
                observed_at=observed_at,
                pump_actual_state=(reported_pump if isinstance(reported_pump, bool)
                                   else previous.pump_actual_state),
            )
            snapshot = self._telemetry

        logger.info(f"Received sensor data: {snapshot.to_dict()}")
        return snapshot

    def get_telemetry(self) -> TelemetrySnapshot:
        with self._lock:
            return self._telemetry

    # Pump command

    def set_pump_command(self, desired: bool) -> Tuple[bool, ControlMode]:
        """Set the manual pump command; only allowed in manual mode."""
        if not isinstance(desired, bool):
            raise InvalidInputError("Invalid pump status. Expected true/false.")

        with self._lock:
            if self._mode is not ControlMode.MANUAL:
                mode, current = self._mode, self._pump_command
            else:
                self._pump_command = desired
                mode, current = None, desired

        if mode is not None:
            logger.warning(f"Manual pump command ignored while in {mode.value} mode")
            raise ModeConflictError(mode, current)

        logger.info(f"Pump manual status updated to: {'ON' if current else 'OFF'}")
        return current, ControlMode.MANUAL

    def get_pump_command(self) -> Tuple[bool, ControlMode]:
        """Command and mode as one consistent pair, as polled by the device."""
        with self._lock:
            return self._pump_command, self._mode

    # Control mode

    def get_control_mode(self) -> ControlMode:
        with self._lock:
            return self._mode

    def set_control_mode(self, mode: Union[ControlMode, str]) -> ControlMode:
        """Switch mode; entering AutoFuzzy forces the manual command OFF."""
        requested = ControlMode.parse(mode)

        with self._lock:
            previous = self._mode
            was_on = False
            if requested is not previous:
                self._mode = requested
                if requested is ControlMode.AUTO_FUZZY:
                    was_on = self._pump_command
                    self._pump_command = False

        if requested is not previous:
            logger.info(f"Control mode updated: {previous.value} -> {requested.value}")
            if requested is ControlMode.AUTO_FUZZY:
                logger.info(f"Auto Fuzzy mode active, manual pump status reset to OFF "
                            f"(was {'ON' if was_on else 'OFF'})")
        return requested

    # Status

    def get_status(self) -> Dict[str, Any]:
        """Combined view of mode, command and telemetry read under one lock."""
        with self._lock:
            mode, command, telemetry = self._mode, self._pump_command, self._telemetry
        return {
            'control_mode': mode.value,
            'pump_status': command,
            'telemetry': telemetry.to_dict(),
        }
