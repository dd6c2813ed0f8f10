"""sample_systems.py: Small power systems and templates shared by the tests."""

from gridops.data_model import (
    Bus,
    InterruptibleLoad,
    Line,
    PowerLoad,
    RenewableDispatch,
    ThermalStandard,
    VariableReserve,
)
from gridops.formulations import (
    DeviceFormulation,
    DeviceModel,
    NetworkModel,
    OperationsProblemTemplate,
    ServiceFormulation,
    ServiceModel,
)
from gridops.optim_model import ProblemContainer, Settings
from gridops.system import PowerSystem


def make_reserve_system(
    horizon: int = 3, load: float = 2.0, requirement: float = 10.0
) -> PowerSystem:
    """One bus, two thermal units of 8 MW with costs 1 and 2, one load,
    and an up reserve covered by both units."""
    system = PowerSystem(forecast_horizon=horizon)
    system.add_bus(Bus(1, bustype="REF"))
    system.add_component(
        ThermalStandard("g1", bus=1, max_active_power=8.0, variable_cost=1.0)
    )
    system.add_component(
        ThermalStandard("g2", bus=1, max_active_power=8.0, variable_cost=2.0)
    )
    system.add_component(PowerLoad("load1", bus=1, max_active_power=load))
    system.add_component(
        VariableReserve(
            "reg_up",
            direction="up",
            requirement=requirement,
            contributing_devices=["g1", "g2"],
            cost=1.0,
        )
    )
    system.add_time_series("load1", "max_active_power", [1.0] * horizon)
    system.add_time_series("reg_up", "requirement", [1.0] * horizon)
    return system


def make_reserve_template(
    network: NetworkModel = NetworkModel.COPPER_PLATE,
) -> OperationsProblemTemplate:
    return OperationsProblemTemplate(
        transmission=network,
        devices={
            "Generators": DeviceModel(ThermalStandard, DeviceFormulation.THERMAL_DISPATCH),
            "Loads": DeviceModel(PowerLoad, DeviceFormulation.STATIC_POWER_LOAD),
        },
        services={
            "Reserves": ServiceModel(VariableReserve, ServiceFormulation.RANGE_RESERVE),
        },
    )


def make_three_bus_system() -> PowerSystem:
    """Three buses in a line with a thermal unit at bus 1, a renewable at
    bus 2, a static load and an interruptible load at bus 3, and a separate
    island made of bus 4. The horizon is two steps."""
    system = PowerSystem(forecast_horizon=2)
    for number in [1, 2, 3, 4]:
        system.add_bus(Bus(number))
    system.add_component(Line("l12", from_bus=1, to_bus=2, reactance=0.1, rate=50.0))
    system.add_component(Line("l23", from_bus=2, to_bus=3, reactance=0.2, rate=50.0))
    system.add_component(
        ThermalStandard(
            "g1",
            bus=1,
            max_active_power=100.0,
            max_reactive_power=50.0,
            min_reactive_power=-50.0,
            variable_cost=10.0,
        )
    )
    system.add_component(
        RenewableDispatch(
            "pv2", bus=2, max_active_power=20.0, max_reactive_power=5.0
        )
    )
    system.add_component(
        PowerLoad("load3", bus=3, max_active_power=40.0, max_reactive_power=10.0)
    )
    system.add_component(
        InterruptibleLoad(
            "iload3", bus=3, max_active_power=5.0, max_reactive_power=1.0, cost=50.0
        )
    )
    system.add_time_series("pv2", "max_active_power", [0.5, 1.0])
    system.add_time_series("load3", "max_active_power", [1.0, 0.5])
    system.add_time_series("iload3", "max_active_power", [1.0, 1.0])
    return system


def make_three_bus_template(
    network: NetworkModel = NetworkModel.DCP,
) -> OperationsProblemTemplate:
    return OperationsProblemTemplate(
        transmission=network,
        devices={
            "Generators": DeviceModel(ThermalStandard, DeviceFormulation.THERMAL_DISPATCH),
            "Renewables": DeviceModel(
                RenewableDispatch, DeviceFormulation.RENEWABLE_FULL_DISPATCH
            ),
            "Loads": DeviceModel(PowerLoad, DeviceFormulation.STATIC_POWER_LOAD),
            "InterruptibleLoads": DeviceModel(
                InterruptibleLoad, DeviceFormulation.INTERRUPTIBLE_POWER_LOAD
            ),
        },
        branches={"Lines": DeviceModel(Line, DeviceFormulation.STATIC_LINE)},
    )


def make_container(
    system: PowerSystem, network: NetworkModel, **settings
) -> ProblemContainer:
    """A container with solver output turned off. Unset settings come from
    the configuration file."""
    container = ProblemContainer(
        network, system, Settings.from_system(system, **settings)
    )
    container.model.setParam("OutputFlag", 0)
    return container


def get_coeffs(expr) -> dict[str, float]:
    """Coefficients of a linear expression by variable name. The model must
    be updated before names can be read."""
    coeffs = {}
    for i in range(expr.size()):
        name = expr.getVar(i).VarName
        coeffs[name] = coeffs.get(name, 0.0) + expr.getCoeff(i)
    return coeffs
