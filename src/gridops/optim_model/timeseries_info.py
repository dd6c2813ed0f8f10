"""timeseries_info.py: Per-device snapshots consumed by constraint and expression builders."""

import dataclasses
import enum


class PeakValue(enum.Enum):
    """Named strategies for the attribute that scales a normalized time series."""

    MAX_ACTIVE_POWER = "max_active_power"
    MAX_REACTIVE_POWER = "max_reactive_power"
    RATING = "rating"


def get_peak_value(strategy: PeakValue, device) -> float:
    if strategy is PeakValue.MAX_ACTIVE_POWER:
        return device.max_active_power
    elif strategy is PeakValue.MAX_REACTIVE_POWER:
        return device.max_reactive_power
    elif strategy is PeakValue.RATING:
        return device.rate
    raise ValueError(f"gridops: Unknown peak value strategy {strategy}.")


def get_active_power_limits(device) -> tuple[float, float]:
    return (getattr(device, "min_active_power", 0.0), device.max_active_power)


@dataclasses.dataclass(frozen=True)
class DeviceTimeSeriesConstraintInfo:
    """
    Snapshot of one device for one build pass.

    Attributes:
        name (str): Device name.
        bus_number (int): Bus the device is connected to.
        limits (tuple[float, float]): Minimum and maximum active power.
        multiplier (float): Peak value that scales the normalized series.
        timeseries (tuple[float, ...]): One value per time step.
    """

    name: str
    bus_number: int
    limits: tuple[float, float]
    multiplier: float
    timeseries: tuple[float, ...]

    @classmethod
    def from_device(cls, device, peak_value: PeakValue, timeseries):
        return cls(
            name=device.name,
            bus_number=device.bus,
            limits=get_active_power_limits(device),
            multiplier=get_peak_value(peak_value, device),
            timeseries=tuple(float(v) for v in timeseries),
        )

    def get_value(self, t: int) -> float:
        return self.timeseries[t - 1]


@dataclasses.dataclass()
class DeviceRange:
    """Range-constraint data of one device. Reserve services register the
    names of their variables as additional terms of the upper or lower limit."""

    name: str
    limits: tuple[float, float]
    additional_terms_ub: list[str] = dataclasses.field(default_factory=list)
    additional_terms_lb: list[str] = dataclasses.field(default_factory=list)
