"""devices.py: Data classes for buses, injection devices, branches, and reserve services."""

import dataclasses
import enum


class ReserveDirection(enum.Enum):
    UP = "up"
    DOWN = "down"


@dataclasses.dataclass()
class Bus:
    """
    A node of the network.

    Attributes:
        number (int): Unique bus number. Expressions and constraints are indexed by it.
        name (str): Name of the bus.
        bustype (str): One of "PQ", "PV", "REF". A "REF" bus is used as the angle
            reference of its island by voltage-angle formulations.
    """

    number: int
    name: str = ""
    bustype: str = "PQ"

    def __post_init__(self):
        if self.bustype not in ("PQ", "PV", "REF"):
            raise ValueError(
                f"gridops: Bus {self.number} has unknown bus type {self.bustype}."
            )
        if not self.name:
            self.name = f"bus{self.number}"


@dataclasses.dataclass()
class ThermalStandard:
    """A dispatchable thermal unit with a linear variable cost in $/MWh
    and a fixed cost in $/h charged while the unit is committed."""

    name: str
    bus: int
    max_active_power: float
    min_active_power: float = 0.0
    max_reactive_power: float = 0.0
    min_reactive_power: float = 0.0
    active_power: float = 0.0
    variable_cost: float = 0.0
    fixed_cost: float = 0.0
    available: bool = True

    def __post_init__(self):
        if self.min_active_power < 0:
            raise ValueError(
                f"gridops: Minimum active power of {self.name} cannot be negative."
            )
        if self.max_active_power < self.min_active_power:
            raise ValueError(
                f"gridops: Maximum active power of {self.name} is below its minimum."
            )
        if self.max_reactive_power < self.min_reactive_power:
            raise ValueError(
                f"gridops: Maximum reactive power of {self.name} is below its minimum."
            )


@dataclasses.dataclass()
class RenewableDispatch:
    """A variable renewable unit. Its forecast is given as a fraction of
    `max_active_power`. A positive `variable_cost` rewards production."""

    name: str
    bus: int
    max_active_power: float
    max_reactive_power: float = 0.0
    min_reactive_power: float = 0.0
    active_power: float = 0.0
    variable_cost: float = 0.0
    available: bool = True

    def __post_init__(self):
        if self.max_active_power < 0:
            raise ValueError(
                f"gridops: Maximum active power of {self.name} cannot be negative."
            )


@dataclasses.dataclass()
class PowerLoad:
    name: str
    bus: int
    max_active_power: float
    max_reactive_power: float = 0.0
    available: bool = True

    def __post_init__(self):
        if self.max_active_power < 0:
            raise ValueError(f"gridops: Demand of {self.name} cannot be negative.")


@dataclasses.dataclass()
class InterruptibleLoad(PowerLoad):
    """A load that can be partially served. `cost` is the value of
    serving one MWh, so serving it lowers the objective."""

    cost: float = 0.0


@dataclasses.dataclass()
class Line:
    """A transmission line from `from_bus` to `to_bus`.

    Attributes:
        reactance (float): Series reactance in per unit. Used by voltage-angle formulations.
        rate (float): Thermal limit in MW.
    """

    name: str
    from_bus: int
    to_bus: int
    reactance: float
    rate: float
    available: bool = True

    def __post_init__(self):
        if self.from_bus == self.to_bus:
            raise ValueError(f"gridops: Line {self.name} is a self-loop.")
        if self.reactance <= 0:
            raise ValueError(f"gridops: Reactance of {self.name} must be positive.")
        if self.rate < 0:
            raise ValueError(f"gridops: Rate of {self.name} cannot be negative.")


@dataclasses.dataclass()
class VariableReserve:
    """
    A reserve product with a time-varying requirement.

    Attributes:
        name (str): Name of the reserve.
        direction (ReserveDirection): UP reserves are held below the maximum output,
            DOWN reserves above the minimum output of each contributing device.
        requirement (float): Requirement in MW. The "requirement" time series scales it.
        contributing_devices (list[str]): Names of the devices that can provide the reserve.
        cost (float): Cost of holding one MW of reserve for one period.
    """

    name: str
    direction: ReserveDirection
    requirement: float
    contributing_devices: list[str] = dataclasses.field(default_factory=list)
    cost: float = 0.0
    available: bool = True

    def __post_init__(self):
        if isinstance(self.direction, str):
            self.direction = ReserveDirection(self.direction.lower())
        if self.requirement < 0:
            raise ValueError(
                f"gridops: Requirement of reserve {self.name} cannot be negative."
            )
        if len(set(self.contributing_devices)) != len(self.contributing_devices):
            raise ValueError(
                f"gridops: Reserve {self.name} lists a contributing device twice."
            )
