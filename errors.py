"""
Exception taxonomy for the simulation core.
"""


class SimulationError(Exception):
    """Base class for errors raised by the simulation core."""


class LoadError(SimulationError):
    """Static country/company data is missing or malformed."""


class StateValidationError(SimulationError):
    """A persisted snapshot cannot be restored."""


class InitializationError(SimulationError):
    """The engine was used before its data was loaded, or the player country is missing."""
