"""Data classes describing the components of a power system."""

from .devices import (
    Bus,
    ThermalStandard,
    RenewableDispatch,
    PowerLoad,
    InterruptibleLoad,
    Line,
    VariableReserve,
    ReserveDirection,
)

__all__ = [
    "Bus",
    "ThermalStandard",
    "RenewableDispatch",
    "PowerLoad",
    "InterruptibleLoad",
    "Line",
    "VariableReserve",
    "ReserveDirection",
]
