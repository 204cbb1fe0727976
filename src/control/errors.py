"""Coordinator errors: invalid input (400) and mode conflict (403)."""


class CoordinatorError(Exception):
    """Base class for rejected coordinator operations."""


class InvalidInputError(CoordinatorError, ValueError):
    """Malformed or incomplete request payload."""


class InvalidReportError(InvalidInputError):
    """Telemetry report missing one of the required sensor fields."""

    def __init__(self, missing):
        self.missing = tuple(missing)
        super().__init__(f"Incomplete sensor data, missing: {', '.join(self.missing)}")


class InvalidReadingError(InvalidInputError):
    """Telemetry report with a non-finite sensor value (inf or NaN)."""

    def __init__(self, fields):
        self.fields = tuple(fields)
        super().__init__(f"Invalid sensor data, non-finite value in: {', '.join(self.fields)}")


class InvalidModeError(InvalidInputError):
    """Requested control mode is not one of the known literals."""

    def __init__(self, mode):
        self.mode = mode
        super().__init__(f"Invalid control mode: {mode!r}")


class ModeConflictError(CoordinatorError):
    """Manual pump command submitted while automatic control is active."""

    def __init__(self, mode, pump_status: bool):
        self.mode = mode
        self.pump_status = pump_status
        super().__init__(f"Cannot control pump manually. System is in {getattr(mode, 'value', mode)} mode.")
