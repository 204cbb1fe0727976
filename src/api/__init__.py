"""HTTP adapter for the device state coordinator."""
