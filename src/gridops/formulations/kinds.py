"""kinds.py: Closed sets of network, device, and service formulations."""

import enum


class NetworkFamily(enum.Enum):
    """Network formulations either balance active power only, or active
    and reactive power."""

    ACTIVE_POWER = "active_power"
    FULL_POWER = "full_power"


class NetworkModel(enum.Enum):
    COPPER_PLATE = "CopperPlatePowerModel"
    NFA = "NFAPowerModel"
    DCP = "DCPPowerModel"
    LINEAR_AC = "LinearACPowerModel"

    @property
    def family(self) -> NetworkFamily:
        if self is NetworkModel.LINEAR_AC:
            return NetworkFamily.FULL_POWER
        return NetworkFamily.ACTIVE_POWER

    @property
    def is_reactive_capable(self) -> bool:
        return self.family is NetworkFamily.FULL_POWER


class DeviceFormulation(enum.Enum):
    # Thermal units
    THERMAL_DISPATCH = "ThermalDispatch"
    THERMAL_DISPATCH_NO_MIN = "ThermalDispatchNoMin"
    THERMAL_BASIC_UNIT_COMMITMENT = "ThermalBasicUnitCommitment"
    # Renewable units
    RENEWABLE_FULL_DISPATCH = "RenewableFullDispatch"
    RENEWABLE_FIXED = "RenewableFixed"
    # Loads
    STATIC_POWER_LOAD = "StaticPowerLoad"
    INTERRUPTIBLE_POWER_LOAD = "InterruptiblePowerLoad"
    # Branches
    STATIC_LINE = "StaticLine"
    STATIC_LINE_UNBOUNDED = "StaticLineUnbounded"


class ServiceFormulation(enum.Enum):
    RANGE_RESERVE = "RangeReserve"
